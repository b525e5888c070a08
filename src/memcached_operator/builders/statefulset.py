"""Builder for the StatefulSet running the memcached pods."""

from __future__ import annotations

from typing import Any

from ..constants import (
    ANNOTATION_INPUT_HASH,
    CA_BUNDLE_KEY,
    KIND_STATEFUL_SET,
    MEMCACHED_PORT,
    MEMCACHED_TLS_PORT,
    TLS_CERT_KEY,
    TLS_PRIVATE_KEY,
)
from ..models import Memcached
from .common import labels, object_meta, selector_labels
from .config import config_map_name
from .rbac import service_account_name

CONFIG_VOLUME = "config-data"
CERT_VOLUME = "memcached-tls-certs"
CA_VOLUME = "combined-ca-bundle"


def _volumes(instance: Memcached) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    volumes: list[dict[str, Any]] = [
        {
            "name": CONFIG_VOLUME,
            "configMap": {
                "name": config_map_name(instance),
                "items": [
                    {"key": "memcached", "path": "src/memcached"},
                    {"key": "config.json", "path": "config.json"},
                ],
            },
        }
    ]
    mounts: list[dict[str, Any]] = [
        {"name": CONFIG_VOLUME, "mountPath": "/var/lib/kolla/config_files", "readOnly": True},
    ]

    tls = instance.spec.tls
    if tls.ca_bundle_secret_name:
        volumes.append({
            "name": CA_VOLUME,
            "secret": {
                "secretName": tls.ca_bundle_secret_name,
                "defaultMode": 0o444,
                "items": [{"key": CA_BUNDLE_KEY, "path": "tls-ca-bundle.pem"}],
            },
        })
        mounts.append({
            "name": CA_VOLUME,
            "mountPath": "/etc/pki/ca-trust/extracted/pem/tls-ca-bundle.pem",
            "subPath": "tls-ca-bundle.pem",
            "readOnly": True,
        })
    if tls.enabled():
        volumes.append({
            "name": CERT_VOLUME,
            "secret": {"secretName": tls.secret_name, "defaultMode": 0o440},
        })
        mounts.extend([
            {
                "name": CERT_VOLUME,
                "mountPath": "/etc/pki/tls/certs/memcached.crt",
                "subPath": TLS_CERT_KEY,
                "readOnly": True,
            },
            {
                "name": CERT_VOLUME,
                "mountPath": "/etc/pki/tls/private/memcached.key",
                "subPath": TLS_PRIVATE_KEY,
                "readOnly": True,
            },
        ])
    return volumes, mounts


def stateful_set(instance: Memcached, input_hash: str) -> dict[str, Any]:
    """Create the StatefulSet manifest for a Memcached instance.

    The combined input hash is injected into the pod template, so any change
    to a restart-relevant input rolls the pods.

    Args:
        instance: Memcached instance
        input_hash: Combined fingerprint of configuration and TLS inputs

    Returns:
        StatefulSet manifest
    """
    tls_enabled = instance.spec.tls.enabled()
    port = MEMCACHED_TLS_PORT if tls_enabled else MEMCACHED_PORT
    volumes, mounts = _volumes(instance)

    container_ports = [{"name": "memcached", "containerPort": MEMCACHED_PORT, "protocol": "TCP"}]
    if tls_enabled:
        container_ports.append({"name": "memcached-tls", "containerPort": MEMCACHED_TLS_PORT, "protocol": "TCP"})

    probe = {
        "tcpSocket": {"port": port},
        "initialDelaySeconds": 3,
        "periodSeconds": 3,
        "timeoutSeconds": 5,
    }

    return {
        "apiVersion": "apps/v1",
        "kind": KIND_STATEFUL_SET,
        "metadata": object_meta(instance, instance.name),
        "spec": {
            "serviceName": instance.name,
            "replicas": instance.spec.replicas,
            "podManagementPolicy": "Parallel",
            "selector": {"matchLabels": selector_labels(instance)},
            "template": {
                "metadata": {
                    "labels": labels(instance),
                    "annotations": {ANNOTATION_INPUT_HASH: input_hash},
                },
                "spec": {
                    "serviceAccountName": service_account_name(instance),
                    "containers": [
                        {
                            "name": "memcached",
                            "image": instance.spec.container_image,
                            "command": ["/usr/bin/dumb-init", "--", "/usr/local/bin/kolla_start"],
                            "env": [
                                {"name": "KOLLA_CONFIG_STRATEGY", "value": "COPY_ALWAYS"},
                                {"name": "CONFIG_HASH", "value": input_hash},
                            ],
                            "ports": container_ports,
                            "volumeMounts": mounts,
                            "readinessProbe": probe,
                            "livenessProbe": probe,
                        }
                    ],
                    "volumes": volumes,
                },
            },
        },
    }
