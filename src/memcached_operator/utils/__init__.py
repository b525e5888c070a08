"""Utility functions for the Memcached Operator."""

from .conditions import ConditionList, update_condition
from .context import (
    get_context_dict,
    get_correlation_id,
    with_correlation_id,
)
from .errors import SecretNotFoundError, SecretValidationError, sanitize_exception
from .events import emit_event
from .hashing import InputHashes, hash_of_input_hashes, object_hash
from .rate_limit import handle_rate_limit_error, rate_limit_k8s
from .routing import DependencyRouter, ReconcileRequest
from .secrets import validate_ca_cert_secret, validate_cert_secret

__all__ = [
    "ConditionList",
    "update_condition",
    "emit_event",
    "InputHashes",
    "hash_of_input_hashes",
    "object_hash",
    "rate_limit_k8s",
    "handle_rate_limit_error",
    "DependencyRouter",
    "ReconcileRequest",
    "SecretNotFoundError",
    "SecretValidationError",
    "sanitize_exception",
    "validate_ca_cert_secret",
    "validate_cert_secret",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
