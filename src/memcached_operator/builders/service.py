"""Builder for the headless service exposing Memcached pods."""

from __future__ import annotations

from typing import Any

from ..constants import KIND_SERVICE, MEMCACHED_PORT, MEMCACHED_TLS_PORT
from ..models import Memcached
from .common import object_meta, selector_labels


def headless_service(instance: Memcached) -> dict[str, Any]:
    """Create the headless service that gives each pod a stable DNS name.

    Args:
        instance: Memcached instance

    Returns:
        Service manifest
    """
    ports = [
        {"name": "memcached", "port": MEMCACHED_PORT, "protocol": "TCP", "targetPort": MEMCACHED_PORT},
    ]
    if instance.spec.tls.enabled():
        ports.append(
            {"name": "memcached-tls", "port": MEMCACHED_TLS_PORT, "protocol": "TCP", "targetPort": MEMCACHED_TLS_PORT}
        )

    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE,
        "metadata": object_meta(instance, instance.name),
        "spec": {
            "clusterIP": "None",
            "publishNotReadyAddresses": True,
            "ports": ports,
            "selector": selector_labels(instance),
        },
    }
