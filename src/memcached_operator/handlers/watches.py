"""Watches that turn changes of related objects into Memcached reconcile requests."""

from __future__ import annotations

import logging
from typing import Any

import kopf
from kubernetes import client

from .. import metrics
from ..constants import (
    ANNOTATION_RECONCILE_TRIGGER,
    API_GROUP_VERSION,
    KIND_MEMCACHED,
    LABEL_INSTANCE_NAME,
    LABEL_OWNER,
    OWNER_NAME,
)
from ..utils.routing import DependencyRouter, ReconcileRequest
from .memcached import get_handler

logger = logging.getLogger(__name__)

# Shared secret reference indexes
router = DependencyRouter()

# Watch event types that are real changes; the initial listing has no type
CHANGE_EVENTS = ("ADDED", "MODIFIED", "DELETED")


def enqueue(request: ReconcileRequest, trigger: str, source: str) -> bool:
    """Ask kopf to run a pass for one instance.

    The request is delivered by stamping the trigger on the instance, which
    kopf reports as an update.

    Args:
        request: Instance to reconcile
        trigger: Identity of the object that caused the request
        source: Kind of watched source, used as metric label

    Returns:
        True if the request was delivered, False if the instance is gone
    """
    try:
        get_handler().store.patch_instance_annotations(
            request.namespace,
            request.name,
            {ANNOTATION_RECONCILE_TRIGGER: trigger},
        )
    except client.exceptions.ApiException as e:
        if e.status == 404:
            metrics.reconcile_requests_total.labels(source=source, result="not_found").inc()
            return False
        metrics.reconcile_requests_total.labels(source=source, result="error").inc()
        raise
    metrics.reconcile_requests_total.labels(source=source, result="enqueued").inc()
    return True


def _trigger(kind: str, meta: dict[str, Any]) -> str:
    return f"{kind}/{meta.get('name')}@{meta.get('resourceVersion', '')}"


@kopf.on.event(API_GROUP_VERSION, KIND_MEMCACHED)
def index_memcached(event: dict[str, Any], body: kopf.Body, **kwargs: Any) -> None:
    """Keep the secret reference indexes and pass locks in line with Memcached instances."""
    meta = body["metadata"]
    if event.get("type") == "DELETED":
        router.remove(meta["namespace"], meta["name"])
        get_handler().forget(meta["namespace"], meta["name"])
    else:
        router.update(meta["namespace"], meta["name"], body.get("spec"))


@kopf.on.event("secrets")
def handle_secret_event(event: dict[str, Any], body: kopf.Body, **kwargs: Any) -> None:
    """Requeue every instance referencing a changed secret."""
    if event.get("type") not in CHANGE_EVENTS:
        return

    meta = body["metadata"]
    requests = router.requests_for(meta["namespace"], meta["name"])
    if not requests:
        return

    logger.info(
        f"Secret {meta['namespace']}/{meta['name']} changed, requeueing {len(requests)} instance(s)"
    )
    trigger = _trigger("Secret", meta)
    for request in requests:
        enqueue(request, trigger, source="secret")


@kopf.on.event("apps", "v1", "statefulsets", labels={LABEL_OWNER: OWNER_NAME})
def handle_stateful_set_event(event: dict[str, Any], body: kopf.Body, **kwargs: Any) -> None:
    """Requeue the instance owning a changed StatefulSet."""
    if event.get("type") not in CHANGE_EVENTS:
        return

    meta = body["metadata"]
    owner = (meta.get("labels") or {}).get(LABEL_INSTANCE_NAME)
    if not owner:
        return
    enqueue(ReconcileRequest(meta["namespace"], owner), _trigger("StatefulSet", meta), source="statefulset")
