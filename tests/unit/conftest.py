"""Shared fixtures for unit tests."""

from __future__ import annotations

import copy
import itertools
from typing import Any
from unittest.mock import patch

import pytest
from kubernetes import client

from memcached_operator.config import OperatorConfig
from memcached_operator.constants import (
    API_GROUP_VERSION,
    CA_BUNDLE_KEY,
    KIND_MEMCACHED,
    KIND_SECRET,
    KIND_SERVICE,
    KIND_STATEFUL_SET,
    TLS_CA_CERT_KEY,
    TLS_CERT_KEY,
    TLS_PRIVATE_KEY,
)
from memcached_operator.handlers.memcached import MemcachedHandler
from memcached_operator.models import Memcached

NAMESPACE = "openstack"
NAME = "memcached"


def api_error(status: int, reason: str = "") -> client.exceptions.ApiException:
    return client.exceptions.ApiException(status=status, reason=reason)


def _merge(target: dict[str, Any], patch_body: dict[str, Any]) -> None:
    for key, value in patch_body.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


def make_instance_body(
    name: str = NAME,
    namespace: str = NAMESPACE,
    replicas: int = 1,
    tls: dict[str, Any] | None = None,
    status: dict[str, Any] | None = None,
    generation: int = 1,
) -> dict[str, Any]:
    """Build a Memcached object as the API server would return it."""
    spec: dict[str, Any] = {"replicas": replicas, "containerImage": "memcached:test"}
    if tls is not None:
        spec["tls"] = tls
    body: dict[str, Any] = {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_MEMCACHED,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "generation": generation,
            "resourceVersion": "1",
        },
        "spec": spec,
    }
    if status is not None:
        body["status"] = status
    return body


def make_instance(**kwargs: Any) -> Memcached:
    return Memcached(make_instance_body(**kwargs))


class FakeStore:
    """In-memory stand-in for ClusterStore.

    Services get an IP family assigned on creation, like the API server does
    once the cluster networking has accepted them. Status patches carrying a
    stale resourceVersion are rejected with 409.
    """

    def __init__(self, ip_family: str | None = "IPv4"):
        self.ip_family = ip_family
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.instances: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self._revisions = itertools.count(100)

    def _revision(self) -> str:
        return str(next(self._revisions))

    def fail(self, verb: str, kind: str, error: Exception) -> None:
        self.failures[(verb, kind)] = error

    def _record(self, verb: str, kind: str, name: str) -> None:
        self.calls.append((verb, kind, name))
        error = self.failures.get((verb, kind))
        if error is not None:
            raise error

    def mutations(self) -> list[tuple[str, str, str]]:
        return [call for call in self.calls if call[0] != "get"]

    # Seeding helpers

    def add(self, obj: dict[str, Any]) -> dict[str, Any]:
        obj = copy.deepcopy(obj)
        meta = obj["metadata"]
        meta["resourceVersion"] = self._revision()
        meta.setdefault("generation", 1)
        self.objects[(obj["kind"], meta["namespace"], meta["name"])] = obj
        return obj

    def add_secret(self, name: str, data: dict[str, str], namespace: str = NAMESPACE) -> dict[str, Any]:
        return self.add({
            "apiVersion": "v1",
            "kind": KIND_SECRET,
            "metadata": {"name": name, "namespace": namespace},
            "data": data,
        })

    def add_ca_secret(self, name: str = "combined-ca-bundle", bundle: str = "Y2EtYnVuZGxl") -> dict[str, Any]:
        return self.add_secret(name, {CA_BUNDLE_KEY: bundle})

    def add_cert_secret(self, name: str = "cert-memcached-svc", cert: str = "Y2VydA==") -> dict[str, Any]:
        return self.add_secret(name, {TLS_CERT_KEY: cert, TLS_PRIVATE_KEY: "a2V5", TLS_CA_CERT_KEY: "Y2E="})

    def add_instance(self, body: dict[str, Any]) -> dict[str, Any]:
        body = copy.deepcopy(body)
        meta = body["metadata"]
        meta["resourceVersion"] = self._revision()
        self.instances[(meta["namespace"], meta["name"])] = body
        return body

    def instance(self, name: str = NAME, namespace: str = NAMESPACE) -> dict[str, Any]:
        return self.instances[(namespace, name)]

    def update_instance_spec(self, spec: dict[str, Any], name: str = NAME, namespace: str = NAMESPACE) -> None:
        body = self.instances[(namespace, name)]
        _merge(body["spec"], spec)
        body["metadata"]["generation"] += 1
        body["metadata"]["resourceVersion"] = self._revision()

    def lookup(self, kind: str, name: str, namespace: str = NAMESPACE) -> dict[str, Any] | None:
        return self.objects.get((kind, namespace, name))

    def set_stateful_set_status(self, ready_replicas: int, name: str = NAME, namespace: str = NAMESPACE) -> None:
        obj = self.objects[(KIND_STATEFUL_SET, namespace, name)]
        obj["status"] = {
            "observedGeneration": obj["metadata"]["generation"],
            "readyReplicas": ready_replicas,
        }

    # ClusterStore interface

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        self._record("get", kind, name)
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def create(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        name = body["metadata"]["name"]
        self._record("create", kind, name)
        if (kind, namespace, name) in self.objects:
            raise api_error(409, "AlreadyExists")
        obj = copy.deepcopy(body)
        if kind == KIND_SERVICE and self.ip_family:
            obj["spec"]["ipFamilies"] = [self.ip_family]
        return copy.deepcopy(self.add(obj))

    def patch(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        self._record("patch", kind, name)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            raise api_error(404, "NotFound")
        old_spec = copy.deepcopy(obj.get("spec"))
        _merge(obj, body)
        meta = obj["metadata"]
        meta["resourceVersion"] = self._revision()
        if obj.get("spec") != old_spec:
            meta["generation"] += 1
        return copy.deepcopy(obj)

    def list(
        self,
        kind: str,
        namespace: str | None = None,
        label_selector: str | None = None,
        field_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        self._record("list", kind, namespace or "")
        if kind == KIND_MEMCACHED:
            items = [body for (ns, _), body in self.instances.items() if namespace in (None, ns)]
        else:
            items = [obj for (k, ns, _), obj in self.objects.items() if k == kind and namespace in (None, ns)]
        return copy.deepcopy(items)

    def get_instance(self, namespace: str, name: str) -> dict[str, Any] | None:
        self._record("get", KIND_MEMCACHED, name)
        body = self.instances.get((namespace, name))
        return copy.deepcopy(body) if body is not None else None

    def patch_instance_status(
        self,
        namespace: str,
        name: str,
        status: dict[str, Any],
        resource_version: str | None,
    ) -> dict[str, Any]:
        self._record("patch_status", KIND_MEMCACHED, name)
        body = self.instances.get((namespace, name))
        if body is None:
            raise api_error(404, "NotFound")
        if resource_version and resource_version != body["metadata"]["resourceVersion"]:
            raise api_error(409, "Conflict")
        _merge(body.setdefault("status", {}), status)
        body["metadata"]["resourceVersion"] = self._revision()
        return copy.deepcopy(body)

    def patch_instance_annotations(self, namespace: str, name: str, annotations: dict[str, str]) -> dict[str, Any]:
        self._record("patch_annotations", KIND_MEMCACHED, name)
        body = self.instances.get((namespace, name))
        if body is None:
            raise api_error(404, "NotFound")
        body["metadata"].setdefault("annotations", {}).update(annotations)
        body["metadata"]["resourceVersion"] = self._revision()
        return copy.deepcopy(body)


def reconcile_until_stable(
    handler: MemcachedHandler,
    store: FakeStore,
    name: str = NAME,
    namespace: str = NAMESPACE,
    ready_replicas: int | None = None,
    max_passes: int = 8,
):
    """Run passes until one does not ask for a requeue.

    After every pass the StatefulSet, if any, is reported as rolled out with
    ``ready_replicas`` ready pods (all replicas when omitted).
    """
    for _ in range(max_passes):
        result = handler.reconcile(namespace, name)
        if store.lookup(KIND_STATEFUL_SET, name, namespace) is not None:
            ready = ready_replicas
            if ready is None:
                ready = store.instance(name, namespace)["spec"]["replicas"]
            store.set_stateful_set_status(ready, name, namespace)
        if not result.requeue:
            return result
    raise AssertionError(f"instance did not settle after {max_passes} passes")


def conditions_by_type(body: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {c["type"]: c for c in (body.get("status") or {}).get("conditions", [])}


@pytest.fixture(autouse=True)
def mock_kopf_event():
    """kopf.event needs a running operator; capture the calls instead."""
    with patch("memcached_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def settings() -> OperatorConfig:
    return OperatorConfig(requeue_after=5.0, request_timeout=10.0)


@pytest.fixture
def handler(store: FakeStore, settings: OperatorConfig) -> MemcachedHandler:
    return MemcachedHandler(store=store, settings=settings)
