"""Create-or-patch synchronization of child resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ... import metrics
from ...utils.addresses import service_ip_family

OP_CREATED = "created"
OP_PATCHED = "patched"
OP_UNCHANGED = "unchanged"


@dataclass
class SyncResult:
    """Outcome of synchronizing one child resource."""

    operation: str
    obj: dict[str, Any]
    requeue_after: float | None = None

    @property
    def changed(self) -> bool:
        return self.operation != OP_UNCHANGED

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None


def is_subset(desired: Any, current: Any) -> bool:
    """Check that every field set in ``desired`` has the same value in ``current``.

    Fields that only exist in ``current`` (server defaults, fields managed by
    other controllers) are ignored. Lists must match in length and compare
    element by element.
    """
    if isinstance(desired, dict):
        if not isinstance(current, dict):
            return False
        return all(key in current and is_subset(value, current[key]) for key, value in desired.items())
    if isinstance(desired, list):
        if not isinstance(current, list) or len(desired) != len(current):
            return False
        return all(is_subset(d, c) for d, c in zip(desired, current))
    return desired == current


def merge_patch_diff(old: dict[str, Any], new: dict[str, Any]) -> dict[str, Any]:
    """Build the JSON merge patch that turns ``old`` into ``new``.

    Keys missing from ``new`` are set to None so the server deletes them.
    Lists are replaced as a whole.
    """
    diff: dict[str, Any] = {key: None for key in old if key not in new}
    for key, value in new.items():
        current = old.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            nested = merge_patch_diff(current, value)
            if nested:
                diff[key] = nested
        elif key not in old or current != value:
            diff[key] = value
    return diff


def create_or_patch(store: Any, desired: dict[str, Any]) -> SyncResult:
    """Converge one object toward ``desired``.

    Args:
        store: Resource store
        desired: Full desired manifest including kind and metadata

    Returns:
        SyncResult describing what was done and the live object
    """
    kind = desired["kind"]
    meta = desired["metadata"]
    namespace, name = meta["namespace"], meta["name"]

    current = store.get(kind, namespace, name)
    if current is None:
        obj = store.create(kind, namespace, desired)
        operation = OP_CREATED
    elif not is_subset(desired, current):
        obj = store.patch(kind, namespace, name, desired)
        operation = OP_PATCHED
    else:
        obj = current
        operation = OP_UNCHANGED

    metrics.child_resource_operations_total.labels(resource=kind, operation=operation).inc()
    return SyncResult(operation, obj)


def sync_service(store: Any, desired: dict[str, Any], requeue_after: float) -> SyncResult:
    """Synchronize a service; requeue until it has been assigned an IP family."""
    result = create_or_patch(store, desired)
    if not service_ip_family(result.obj):
        result.requeue_after = requeue_after
    return result


def sync_stateful_set(store: Any, desired: dict[str, Any], requeue_after: float) -> SyncResult:
    """Synchronize a StatefulSet; requeue while the rollout has not been observed."""
    result = create_or_patch(store, desired)
    generation = (result.obj.get("metadata") or {}).get("generation", 0)
    observed = (result.obj.get("status") or {}).get("observedGeneration", 0)
    if result.operation == OP_CREATED or observed < generation:
        result.requeue_after = requeue_after
    return result
