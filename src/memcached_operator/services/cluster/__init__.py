"""Kubernetes cluster access for the Memcached Operator."""

from .store import ClusterStore
from .sync import SyncResult, create_or_patch, is_subset, merge_patch_diff, sync_service, sync_stateful_set

__all__ = [
    "ClusterStore",
    "SyncResult",
    "create_or_patch",
    "is_subset",
    "merge_patch_diff",
    "sync_service",
    "sync_stateful_set",
]
