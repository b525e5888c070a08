"""Metadata shared by every child resource of a Memcached instance."""

from __future__ import annotations

from typing import Any

from ..constants import (
    API_GROUP_VERSION,
    KIND_MEMCACHED,
    LABEL_APP,
    LABEL_CR,
    LABEL_INSTANCE_NAME,
    LABEL_OWNER,
    OWNER_NAME,
)
from ..models import Memcached


def labels(instance: Memcached) -> dict[str, str]:
    """Labels identifying the children of ``instance``."""
    return {
        LABEL_APP: "memcached",
        LABEL_CR: f"memcached-{instance.name}",
        LABEL_OWNER: OWNER_NAME,
        LABEL_INSTANCE_NAME: instance.name,
    }


def selector_labels(instance: Memcached) -> dict[str, str]:
    """Immutable subset of the labels used for pod selection."""
    return {
        LABEL_APP: "memcached",
        LABEL_CR: f"memcached-{instance.name}",
    }


def owner_reference(instance: Memcached) -> dict[str, Any]:
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_MEMCACHED,
        "name": instance.name,
        "uid": instance.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def object_meta(instance: Memcached, name: str) -> dict[str, Any]:
    return {
        "name": name,
        "namespace": instance.namespace,
        "labels": labels(instance),
        "ownerReferences": [owner_reference(instance)],
    }
