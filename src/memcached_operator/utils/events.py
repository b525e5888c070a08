"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_INPUT_HASH_CHANGED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_RESOURCE_CREATED,
    EVENT_REASON_RESOURCE_UPDATED,
    EVENT_REASON_TLS_INPUT_WAITING,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Object the event is about
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_input_hash_changed(body: dict[str, Any], input_hash: str) -> None:
    """Emit input hash changed event."""
    emit_event(body, EVENT_REASON_INPUT_HASH_CHANGED, f"Input hash changed to {input_hash}")


def emit_tls_input_waiting(body: dict[str, Any], secret_name: str) -> None:
    """Emit TLS input waiting event."""
    emit_event(body, EVENT_REASON_TLS_INPUT_WAITING, f"Waiting for secret {secret_name}")


def emit_resource_synced(body: dict[str, Any], kind: str, name: str, operation: str) -> None:
    """Emit an event for a created or patched child resource."""
    reason = EVENT_REASON_RESOURCE_CREATED if operation == "created" else EVENT_REASON_RESOURCE_UPDATED
    emit_event(body, reason, f"{kind} {name} {operation}")
