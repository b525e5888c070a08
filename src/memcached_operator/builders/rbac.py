"""Builders for the service account, role and role binding of a Memcached instance."""

from __future__ import annotations

from typing import Any

from ..constants import KIND_ROLE, KIND_ROLE_BINDING, KIND_SERVICE_ACCOUNT
from ..models import Memcached
from .common import object_meta

RBAC_RULES: list[dict[str, Any]] = [
    {
        "apiGroups": ["security.openshift.io"],
        "resourceNames": ["anyuid"],
        "resources": ["securitycontextconstraints"],
        "verbs": ["use"],
    },
    {
        "apiGroups": [""],
        "resources": ["pods"],
        "verbs": ["create", "get", "list", "watch", "update", "patch", "delete"],
    },
]


def service_account_name(instance: Memcached) -> str:
    return f"memcached-{instance.name}"


def role_name(instance: Memcached) -> str:
    return f"memcached-{instance.name}-role"


def role_binding_name(instance: Memcached) -> str:
    return f"memcached-{instance.name}-rolebinding"


def service_account(instance: Memcached) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE_ACCOUNT,
        "metadata": object_meta(instance, service_account_name(instance)),
    }


def role(instance: Memcached, rules: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": KIND_ROLE,
        "metadata": object_meta(instance, role_name(instance)),
        "rules": rules if rules is not None else RBAC_RULES,
    }


def role_binding(instance: Memcached) -> dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": KIND_ROLE_BINDING,
        "metadata": object_meta(instance, role_binding_name(instance)),
        "roleRef": {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": KIND_ROLE,
            "name": role_name(instance),
        },
        "subjects": [
            {
                "kind": KIND_SERVICE_ACCOUNT,
                "name": service_account_name(instance),
                "namespace": instance.namespace,
            }
        ],
    }
