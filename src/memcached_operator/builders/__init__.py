"""Desired-state builders for Memcached child resources."""

from .config import ConfigParameters, TemplateRenderer, config_map
from .rbac import role, role_binding, service_account
from .service import headless_service
from .statefulset import stateful_set

__all__ = [
    "ConfigParameters",
    "TemplateRenderer",
    "config_map",
    "headless_service",
    "role",
    "role_binding",
    "service_account",
    "stateful_set",
]
