"""Kubernetes object store used by the reconciler."""

from __future__ import annotations

import time
from typing import Any, Callable

from kubernetes import client, config

from ... import metrics
from ...config import OperatorConfig
from ...constants import (
    API_GROUP,
    API_VERSION,
    FIELD_MANAGER,
    KIND_CONFIG_MAP,
    KIND_MEMCACHED,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_SECRET,
    KIND_SERVICE,
    KIND_SERVICE_ACCOUNT,
    KIND_STATEFUL_SET,
    PLURAL_MEMCACHED,
)
from ...utils.rate_limit import handle_rate_limit_error, rate_limit_k8s

MERGE_PATCH = "application/merge-patch+json"

# kind -> (API attribute, method suffix)
KIND_METHODS: dict[str, tuple[str, str]] = {
    KIND_SERVICE_ACCOUNT: ("core_api", "service_account"),
    KIND_SERVICE: ("core_api", "service"),
    KIND_CONFIG_MAP: ("core_api", "config_map"),
    KIND_SECRET: ("core_api", "secret"),
    KIND_ROLE: ("rbac_api", "role"),
    KIND_ROLE_BINDING: ("rbac_api", "role_binding"),
    KIND_STATEFUL_SET: ("apps_api", "stateful_set"),
}


class ClusterStore:
    """Read and write namespaced objects through the Kubernetes API.

    All objects are exchanged as plain dicts in their API (camelCase) form.
    Every call carries the configured request timeout and is rate limited.
    """

    def __init__(
        self,
        core_api: Any = None,
        apps_api: Any = None,
        rbac_api: Any = None,
        custom_api: Any = None,
        api_client: Any = None,
        request_timeout: float | None = None,
    ):
        self.api_client = api_client or client.ApiClient()
        self.core_api = core_api or client.CoreV1Api(self.api_client)
        self.apps_api = apps_api or client.AppsV1Api(self.api_client)
        self.rbac_api = rbac_api or client.RbacAuthorizationV1Api(self.api_client)
        self.custom_api = custom_api or client.CustomObjectsApi(self.api_client)
        self.request_timeout = request_timeout

    @classmethod
    def from_environment(cls, settings: OperatorConfig) -> ClusterStore:
        """Create a store using in-cluster credentials, falling back to kubeconfig."""
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
        return cls(request_timeout=settings.request_timeout)

    def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        if self.request_timeout is not None:
            kwargs["_request_timeout"] = self.request_timeout
        attempt = 0
        while True:
            start_time = time.time()
            try:
                result = rate_limit_k8s(func)(**kwargs)
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
                return result
            except client.exceptions.ApiException as e:
                result_label = "not_found" if e.status == 404 else "error"
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result_label).inc()
                if handle_rate_limit_error(e, attempt):
                    attempt += 1
                    continue
                raise
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def _method(self, kind: str, verb: str) -> Callable[..., Any]:
        try:
            api_attr, suffix = KIND_METHODS[kind]
        except KeyError:
            raise ValueError(f"Unsupported kind: {kind}") from None
        return getattr(getattr(self, api_attr), f"{verb}_namespaced_{suffix}")

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        """Fetch an object, returning None when it does not exist."""
        try:
            obj = self._call(f"get_{kind.lower()}", self._method(kind, "read"), name=name, namespace=namespace)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise
        return self._to_dict(obj)

    def create(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        obj = self._call(
            f"create_{kind.lower()}",
            self._method(kind, "create"),
            namespace=namespace,
            body=body,
            field_manager=FIELD_MANAGER,
        )
        return self._to_dict(obj)

    def patch(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        obj = self._call(
            f"patch_{kind.lower()}",
            self._method(kind, "patch"),
            name=name,
            namespace=namespace,
            body=body,
            field_manager=FIELD_MANAGER,
            _content_type=MERGE_PATCH,
        )
        return self._to_dict(obj)

    def list(
        self,
        kind: str,
        namespace: str | None = None,
        label_selector: str | None = None,
        field_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """List objects of one kind, cluster-wide when ``namespace`` is None."""
        kwargs: dict[str, Any] = {}
        if label_selector:
            kwargs["label_selector"] = label_selector
        if field_selector:
            kwargs["field_selector"] = field_selector

        if kind == KIND_MEMCACHED:
            kwargs.update(group=API_GROUP, version=API_VERSION, plural=PLURAL_MEMCACHED)
            if namespace:
                func = self.custom_api.list_namespaced_custom_object
                kwargs["namespace"] = namespace
            else:
                func = self.custom_api.list_cluster_custom_object
        elif namespace:
            func = self._method(kind, "list")
            kwargs["namespace"] = namespace
        else:
            api_attr, suffix = KIND_METHODS[kind]
            func = getattr(getattr(self, api_attr), f"list_{suffix}_for_all_namespaces")

        result = self._call(f"list_{kind.lower()}", func, **kwargs)
        return self._to_dict(result).get("items") or []

    def get_instance(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Fetch a Memcached instance, returning None when it does not exist."""
        try:
            return self._call(
                "get_memcached",
                self.custom_api.get_namespaced_custom_object,
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL_MEMCACHED,
                name=name,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise

    def patch_instance_status(
        self,
        namespace: str,
        name: str,
        status: dict[str, Any],
        resource_version: str | None,
    ) -> dict[str, Any]:
        """Merge-patch the instance status.

        ``status`` is a JSON merge patch document; keys set to None are removed.
        The patch carries the resourceVersion read at the start of the pass,
        so the API server rejects it with 409 Conflict if the instance changed
        in between.
        """
        body: dict[str, Any] = {"status": status}
        if resource_version:
            body["metadata"] = {"resourceVersion": resource_version}
        return self._call(
            "patch_memcached_status",
            self.custom_api.patch_namespaced_custom_object_status,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_MEMCACHED,
            name=name,
            body=body,
            field_manager=FIELD_MANAGER,
            _content_type=MERGE_PATCH,
        )

    def patch_instance_annotations(
        self,
        namespace: str,
        name: str,
        annotations: dict[str, str],
    ) -> dict[str, Any]:
        return self._call(
            "patch_memcached",
            self.custom_api.patch_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_MEMCACHED,
            name=name,
            body={"metadata": {"annotations": annotations}},
            field_manager=FIELD_MANAGER,
            _content_type=MERGE_PATCH,
        )


