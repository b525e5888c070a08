"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Iterable

from ..constants import (
    COND_READY,
    REASON_READY,
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_NONE,
    SEVERITY_WARNING,
)

STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

# Lower rank is less favorable
_SEVERITY_RANK = {
    SEVERITY_ERROR: 0,
    SEVERITY_WARNING: 1,
    SEVERITY_INFO: 2,
    SEVERITY_NONE: 3,
}


def now_timestamp() -> str:
    """Return the current time in the Kubernetes timestamp format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def make_condition(
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    severity: str = SEVERITY_NONE,
) -> dict[str, Any]:
    """Build a condition dict without a transition time."""
    return {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "severity": severity,
        "message": message,
    }


def unknown_condition(condition_type: str, reason: str, message: str) -> dict[str, Any]:
    """Build an Unknown condition."""
    return make_condition(condition_type, STATUS_UNKNOWN, reason, message)


def true_condition(condition_type: str, message: str) -> dict[str, Any]:
    """Build a True condition."""
    return make_condition(condition_type, STATUS_TRUE, REASON_READY, message)


def false_condition(
    condition_type: str,
    reason: str,
    severity: str,
    message: str,
) -> dict[str, Any]:
    """Build a False condition."""
    return make_condition(condition_type, STATUS_FALSE, reason, message, severity)


def update_condition(
    conditions: list[dict[str, Any]],
    condition: dict[str, Any],
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    The lastTransitionTime is refreshed only when the status value changes.

    Args:
        conditions: List of existing conditions
        condition: Condition to upsert

    Returns:
        Updated list of conditions
    """
    now = now_timestamp()
    new_condition = dict(condition)
    new_condition["lastTransitionTime"] = now

    for idx, existing in enumerate(conditions):
        if existing.get("type") == condition["type"]:
            if existing.get("status") == condition["status"]:
                new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
            conditions[idx] = new_condition
            return conditions

    conditions.append(new_condition)
    return conditions


def _mirror_rank(condition: dict[str, Any]) -> int:
    return _SEVERITY_RANK.get(condition.get("severity", SEVERITY_NONE), len(_SEVERITY_RANK))


class ConditionList:
    """Ordered set of conditions keyed by type.

    Wraps the ``status.conditions`` list of a resource. Entries keep the order
    in which they were first declared.
    """

    def __init__(self, conditions: Iterable[dict[str, Any]] | None = None):
        self.items: list[dict[str, Any]] = [dict(c) for c in (conditions or [])]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def get(self, condition_type: str) -> dict[str, Any] | None:
        for cond in self.items:
            if cond.get("type") == condition_type:
                return cond
        return None

    def init(self, defaults: Iterable[dict[str, Any]]) -> None:
        """Add every default whose type is not tracked yet; existing entries are untouched."""
        for default in defaults:
            if self.get(default["type"]) is None:
                update_condition(self.items, default)

    def set(self, condition: dict[str, Any]) -> None:
        update_condition(self.items, condition)

    def mark_true(self, condition_type: str, message: str) -> None:
        self.set(true_condition(condition_type, message))

    def mark_false(self, condition_type: str, reason: str, severity: str, message: str) -> None:
        self.set(false_condition(condition_type, reason, severity, message))

    def is_unknown(self, condition_type: str) -> bool:
        cond = self.get(condition_type)
        return cond is None or cond.get("status") == STATUS_UNKNOWN

    def all_sub_conditions_true(self, exclude: str = COND_READY) -> bool:
        """Return True when every tracked condition other than ``exclude`` is True."""
        subs = [c for c in self.items if c.get("type") != exclude]
        return all(c.get("status") == STATUS_TRUE for c in subs)

    def restore_last_transition_times(self, previous: Iterable[dict[str, Any]]) -> None:
        """Carry forward saved timestamps for conditions whose status did not change.

        Args:
            previous: Snapshot of the conditions taken at the start of the pass
        """
        saved = {c.get("type"): c for c in previous}
        for cond in self.items:
            old = saved.get(cond.get("type"))
            if old is None or old.get("status") != cond.get("status"):
                continue
            if "lastTransitionTime" in old:
                cond["lastTransitionTime"] = old["lastTransitionTime"]

    def mirror(self, target: str = COND_READY) -> dict[str, Any] | None:
        """Build a copy of the least favorable False sub-condition typed as ``target``.

        Unknown and True conditions are never mirrored, so the target can only
        become True through the aggregate check.

        Returns:
            The mirrored condition, or None when no sub-condition is False
        """
        failed = [
            c for c in self.items
            if c.get("type") != target and c.get("status") == STATUS_FALSE
        ]
        if not failed:
            return None
        worst = min(failed, key=_mirror_rank)
        return make_condition(
            target,
            STATUS_FALSE,
            worst.get("reason", ""),
            worst.get("message", ""),
            worst.get("severity", SEVERITY_NONE),
        )

    def snapshot(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.items)

    def to_list(self) -> list[dict[str, Any]]:
        return [dict(c) for c in self.items]
