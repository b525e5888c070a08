"""Handler for Memcached CRD."""

from __future__ import annotations

import copy
import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

import kopf

from .. import metrics
from ..builders.config import ConfigParameters, ConfigRenderer, TemplateRenderer, config_map, config_map_name
from ..builders.rbac import role, role_binding, service_account
from ..builders.service import headless_service
from ..builders.statefulset import stateful_set
from ..config import OperatorConfig, get_config
from ..constants import (
    API_GROUP_VERSION,
    CA_HASH_NAME,
    CERT_HASH_NAME,
    COND_DEPLOYMENT_READY,
    COND_EXPOSE_SERVICE_READY,
    COND_READY,
    COND_ROLE_BINDING_READY,
    COND_ROLE_READY,
    COND_SERVICE_ACCOUNT_READY,
    COND_SERVICE_CONFIG_READY,
    COND_TLS_INPUT_READY,
    KIND_MEMCACHED,
    MSG_DEPLOYMENT_INIT,
    MSG_DEPLOYMENT_READY,
    MSG_EXPOSE_SERVICE_ERROR,
    MSG_EXPOSE_SERVICE_INIT,
    MSG_EXPOSE_SERVICE_READY,
    MSG_READY,
    MSG_READY_INIT,
    MSG_ROLE_BINDING_ERROR,
    MSG_ROLE_BINDING_INIT,
    MSG_ROLE_BINDING_READY,
    MSG_ROLE_ERROR,
    MSG_ROLE_INIT,
    MSG_ROLE_READY,
    MSG_SERVICE_ACCOUNT_ERROR,
    MSG_SERVICE_ACCOUNT_INIT,
    MSG_SERVICE_ACCOUNT_READY,
    MSG_SERVICE_CONFIG_ERROR,
    MSG_SERVICE_CONFIG_INIT,
    MSG_SERVICE_CONFIG_READY,
    MSG_TLS_INPUT_ERROR,
    MSG_TLS_INPUT_INIT,
    MSG_TLS_INPUT_READY,
    MSG_TLS_INPUT_WAITING,
    REASON_ERROR,
    REASON_INIT,
    REASON_REQUESTED,
    SEVERITY_INFO,
    SEVERITY_WARNING,
)
from ..models import Memcached
from ..services.cluster.store import ClusterStore
from ..services.cluster.sync import (
    SyncResult,
    create_or_patch,
    merge_patch_diff,
    sync_service,
    sync_stateful_set,
)
from ..tracing import add_span_attribute, trace_span
from ..utils.addresses import server_lists, service_ip_family
from ..utils.conditions import ConditionList, unknown_condition
from ..utils.context import with_correlation_id
from ..utils.errors import SecretNotFoundError, sanitize_exception
from ..utils.events import emit_input_hash_changed, emit_resource_synced, emit_tls_input_waiting
from ..utils.hashing import InputHashes, object_hash
from ..utils.secrets import validate_ca_cert_secret, validate_cert_secret
from .base import BaseHandler

# Delay before the follow-up pass after a step that only needs the next pass
SHORT_REQUEUE_SECONDS = 1.0


def condition_defaults() -> list[dict[str, Any]]:
    """Conditions tracked for every Memcached instance, in declaration order."""
    return [
        unknown_condition(COND_READY, REASON_INIT, MSG_READY_INIT),
        unknown_condition(COND_TLS_INPUT_READY, REASON_INIT, MSG_TLS_INPUT_INIT),
        unknown_condition(COND_EXPOSE_SERVICE_READY, REASON_INIT, MSG_EXPOSE_SERVICE_INIT),
        unknown_condition(COND_SERVICE_CONFIG_READY, REASON_INIT, MSG_SERVICE_CONFIG_INIT),
        unknown_condition(COND_DEPLOYMENT_READY, REASON_INIT, MSG_DEPLOYMENT_INIT),
        unknown_condition(COND_SERVICE_ACCOUNT_READY, REASON_INIT, MSG_SERVICE_ACCOUNT_INIT),
        unknown_condition(COND_ROLE_READY, REASON_INIT, MSG_ROLE_INIT),
        unknown_condition(COND_ROLE_BINDING_READY, REASON_INIT, MSG_ROLE_BINDING_INIT),
    ]


# condition type, builder, ready message, error message
RBAC_STEPS: list[tuple[str, Callable[[Memcached], dict[str, Any]], str, str]] = [
    (COND_SERVICE_ACCOUNT_READY, service_account, MSG_SERVICE_ACCOUNT_READY, MSG_SERVICE_ACCOUNT_ERROR),
    (COND_ROLE_READY, role, MSG_ROLE_READY, MSG_ROLE_ERROR),
    (COND_ROLE_BINDING_READY, role_binding, MSG_ROLE_BINDING_READY, MSG_ROLE_BINDING_ERROR),
]


@dataclass
class ReconcileResult:
    """Outcome of a pass that did not raise."""

    requeue_after: float | None = None
    reason: str = ""

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None


class MemcachedHandler(BaseHandler):
    """Handler for Memcached resources."""

    def __init__(
        self,
        store: Any = None,
        renderer: ConfigRenderer | None = None,
        settings: OperatorConfig | None = None,
    ):
        """Initialize memcached handler.

        Args:
            store: Resource store (a ClusterStore is created on first use if omitted)
            renderer: Configuration renderer
            settings: Operator configuration
        """
        super().__init__(KIND_MEMCACHED)
        self._store = store
        self.renderer = renderer or TemplateRenderer()
        self.settings = settings or get_config()
        self._locks: dict[tuple[str, str], threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @property
    def store(self) -> Any:
        if self._store is None:
            self._store = ClusterStore.from_environment(self.settings)
        return self._store

    def _lock_for(self, namespace: str, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[(namespace, name)]

    def forget(self, namespace: str, name: str) -> None:
        """Drop the pass lock of a deleted instance."""
        with self._locks_guard:
            self._locks.pop((namespace, name), None)

    def run(self, body: dict[str, Any]) -> ReconcileResult:
        """Run one pass for the object kopf handed us.

        Raises:
            kopf.TemporaryError: When the pass asks to be requeued
        """
        meta = body["metadata"]
        with with_correlation_id():
            result = self.reconcile_with_metrics(
                body, lambda: self.reconcile(meta["namespace"], meta["name"])
            )
        if result.requeue:
            raise kopf.TemporaryError(result.reason or "requeue requested", delay=result.requeue_after)
        return result

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Converge one Memcached instance toward its desired state.

        Passes for the same instance never overlap.

        Args:
            namespace: Namespace of the instance
            name: Name of the instance

        Returns:
            ReconcileResult, possibly asking for a requeue
        """
        with self._lock_for(namespace, name):
            body = self.store.get_instance(namespace, name)
            if body is None:
                # Deleted; children are garbage collected through owner references
                return ReconcileResult()

            instance = Memcached(body)
            with trace_span(
                "reconcile_memcached",
                kind=self.kind,
                attributes={"memcached.name": name, "memcached.namespace": namespace},
            ):
                with self.status_commit(instance) as conditions:
                    return self._reconcile(instance, conditions)

    @contextmanager
    def status_commit(self, instance: Memcached) -> Iterator[ConditionList]:
        """Rebuild the conditions for one pass and always write the status back.

        The status is written on every exit path, including errors. A failed
        write propagates and replaces whatever the pass produced.
        """
        original = copy.deepcopy(instance.status)
        saved = ConditionList(original.get("conditions")).snapshot()
        conditions = ConditionList()
        conditions.init(condition_defaults())
        try:
            yield conditions
        finally:
            if conditions.is_unknown(COND_READY):
                mirrored = conditions.mirror(COND_READY)
                if mirrored is not None:
                    conditions.set(mirrored)
            conditions.restore_last_transition_times(saved)
            instance.status["conditions"] = conditions.to_list()
            if instance.status != original:
                self.store.patch_instance_status(
                    instance.namespace,
                    instance.name,
                    merge_patch_diff(original, instance.status),
                    instance.resource_version,
                )

    def _reconcile(self, instance: Memcached, conditions: ConditionList) -> ReconcileResult:
        status = instance.status
        status["observedGeneration"] = instance.generation
        status.setdefault("serverList", [])
        status.setdefault("serverListWithInet", [])

        result = self._sync_rbac(instance, conditions)
        if result is not None:
            return result

        inputs = InputHashes()
        result = self._validate_tls(instance, conditions, inputs)
        if result is not None:
            return result

        self._generate_config(instance, conditions, inputs)

        hashes, input_hash, changed = inputs.settle(status.get("hash"))
        if changed:
            # Persist the new hashes and let the next pass roll the pods
            status["hash"] = hashes
            metrics.input_hash_changes_total.labels(kind=self.kind).inc()
            self.log_info(instance.meta, f"Input hash changed {input_hash}", reason="InputHashChanged")
            emit_input_hash_changed(instance.body, input_hash)
            return ReconcileResult(SHORT_REQUEUE_SECONDS, "input hash changed")
        add_span_attribute("memcached.input_hash", input_hash)

        with trace_span("sync_service", kind=self.kind):
            try:
                service = sync_service(self.store, headless_service(instance), self.settings.requeue_after)
            except Exception as e:
                conditions.mark_false(
                    COND_EXPOSE_SERVICE_READY,
                    REASON_ERROR,
                    SEVERITY_WARNING,
                    MSG_EXPOSE_SERVICE_ERROR.format(sanitize_exception(e)),
                )
                raise
        self._record_sync(instance, service)
        if service.requeue:
            return ReconcileResult(service.requeue_after, "waiting for service address family")

        status["serverList"], status["serverListWithInet"] = server_lists(
            instance, service_ip_family(service.obj)
        )
        conditions.mark_true(COND_EXPOSE_SERVICE_READY, MSG_EXPOSE_SERVICE_READY)

        with trace_span("sync_statefulset", kind=self.kind):
            workload = sync_stateful_set(
                self.store, stateful_set(instance, input_hash), self.settings.requeue_after
            )
        self._record_sync(instance, workload)

        ready_count = (workload.obj.get("status") or {}).get("readyReplicas") or 0
        status["readyCount"] = ready_count
        if ready_count > 0:
            conditions.mark_true(COND_DEPLOYMENT_READY, MSG_DEPLOYMENT_READY)

        if conditions.all_sub_conditions_true(exclude=COND_READY):
            conditions.mark_true(COND_READY, MSG_READY)
            metrics.resource_status_total.labels(kind=self.kind, status="ready").inc()
        else:
            metrics.resource_status_total.labels(kind=self.kind, status="not_ready").inc()

        if workload.requeue:
            return ReconcileResult(workload.requeue_after, "waiting for statefulset rollout")
        return ReconcileResult()

    def _sync_rbac(self, instance: Memcached, conditions: ConditionList) -> ReconcileResult | None:
        """Synchronize service account, role and role binding.

        Returns:
            A requeue result if anything was created or patched, None to continue the pass
        """
        changed = False
        with trace_span("sync_rbac", kind=self.kind):
            for cond_type, build, ready_msg, error_msg in RBAC_STEPS:
                try:
                    result = create_or_patch(self.store, build(instance))
                except Exception as e:
                    conditions.mark_false(
                        cond_type, REASON_ERROR, SEVERITY_WARNING, error_msg.format(sanitize_exception(e))
                    )
                    raise
                self._record_sync(instance, result)
                conditions.mark_true(cond_type, ready_msg)
                changed = changed or result.changed
        if changed:
            return ReconcileResult(SHORT_REQUEUE_SECONDS, "access control objects changed")
        return None

    def _validate_tls(
        self,
        instance: Memcached,
        conditions: ConditionList,
        inputs: InputHashes,
    ) -> ReconcileResult | None:
        """Validate the referenced TLS secrets and collect their fingerprints.

        Returns:
            A result ending the pass while a secret is missing, None to continue

        Raises:
            Exception: Any validation failure other than a missing secret
        """
        tls = instance.spec.tls
        sources = []
        if tls.ca_bundle_secret_name:
            sources.append((CA_HASH_NAME, tls.ca_bundle_secret_name, validate_ca_cert_secret))
        if tls.enabled():
            sources.append((CERT_HASH_NAME, tls.secret_name, validate_cert_secret))

        for hash_name, secret_name, validate in sources:
            try:
                fingerprint = validate(self.store, instance.namespace, secret_name)
            except SecretNotFoundError:
                conditions.mark_false(
                    COND_TLS_INPUT_READY,
                    REASON_REQUESTED,
                    SEVERITY_INFO,
                    MSG_TLS_INPUT_WAITING.format(secret_name),
                )
                self.log_info(instance.meta, f"Waiting for secret {secret_name}", reason="TLSInputWaiting")
                emit_tls_input_waiting(instance.body, secret_name)
                return ReconcileResult()
            except Exception as e:
                conditions.mark_false(
                    COND_TLS_INPUT_READY,
                    REASON_ERROR,
                    SEVERITY_WARNING,
                    MSG_TLS_INPUT_ERROR.format(sanitize_exception(e)),
                )
                raise
            inputs.add(hash_name, fingerprint)

        conditions.mark_true(COND_TLS_INPUT_READY, MSG_TLS_INPUT_READY)
        return None

    def _generate_config(self, instance: Memcached, conditions: ConditionList, inputs: InputHashes) -> None:
        """Render the configuration, store it in a ConfigMap and record its fingerprint."""
        with trace_span("generate_config", kind=self.kind):
            try:
                params = ConfigParameters.for_instance(instance)
                files = self.renderer.render(params)
                result = create_or_patch(self.store, config_map(instance, files))
            except Exception as e:
                conditions.mark_false(
                    COND_SERVICE_CONFIG_READY,
                    REASON_ERROR,
                    SEVERITY_WARNING,
                    MSG_SERVICE_CONFIG_ERROR.format(sanitize_exception(e)),
                )
                self.log_error(instance.meta, "Unable to render or store config maps", error=e)
                raise
        self._record_sync(instance, result)
        instance.status["tlsSupport"] = params.tls
        inputs.add(config_map_name(instance), object_hash(files))
        conditions.mark_true(COND_SERVICE_CONFIG_READY, MSG_SERVICE_CONFIG_READY)

    def _record_sync(self, instance: Memcached, result: SyncResult) -> None:
        if not result.changed:
            return
        kind = result.obj.get("kind", "object")
        name = (result.obj.get("metadata") or {}).get("name", "unknown")
        self.log_info(
            instance.meta,
            f"{kind} {name} {result.operation}",
            event="sync",
            reason="ResourceSynced",
            child_kind=kind,
            child_name=name,
        )
        emit_resource_synced(instance.body, kind, name, result.operation)


# Global handler instance
_handler = MemcachedHandler()


def get_handler() -> MemcachedHandler:
    return _handler


@kopf.on.create(API_GROUP_VERSION, KIND_MEMCACHED)
@kopf.on.update(API_GROUP_VERSION, KIND_MEMCACHED)
@kopf.on.resume(API_GROUP_VERSION, KIND_MEMCACHED)
@kopf.timer(API_GROUP_VERSION, KIND_MEMCACHED, interval=get_config().resync_interval)
def handle_memcached(
    body: kopf.Body,
    **kwargs: Any,
) -> None:
    """Handle Memcached resource reconciliation."""
    _handler.run(body)
