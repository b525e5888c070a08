"""Validation of the TLS secrets referenced by a Memcached instance."""

from __future__ import annotations

from typing import Any

from ..constants import (
    CA_BUNDLE_KEY,
    KIND_SECRET,
    TLS_CA_CERT_KEY,
    TLS_CERT_KEY,
    TLS_PRIVATE_KEY,
)
from .errors import SecretNotFoundError, SecretValidationError
from .hashing import object_hash


def _read_secret(store: Any, namespace: str, secret_name: str) -> dict[str, Any]:
    secret = store.get(KIND_SECRET, namespace, secret_name)
    if secret is None:
        raise SecretNotFoundError(namespace, secret_name)
    return secret.get("data") or {}


def validate_ca_cert_secret(store: Any, namespace: str, secret_name: str) -> str:
    """Check that a CA bundle secret exists and return its fingerprint.

    Args:
        store: Resource store
        namespace: Namespace of the secret
        secret_name: Name of the secret

    Returns:
        Fingerprint of the CA bundle

    Raises:
        SecretNotFoundError: If the secret does not exist
        SecretValidationError: If the bundle key is missing
    """
    data = _read_secret(store, namespace, secret_name)
    if not data.get(CA_BUNDLE_KEY):
        raise SecretValidationError(namespace, secret_name, [CA_BUNDLE_KEY])
    return object_hash(data[CA_BUNDLE_KEY])


def validate_cert_secret(store: Any, namespace: str, secret_name: str) -> str:
    """Check that a server certificate secret holds a certificate and key.

    Args:
        store: Resource store
        namespace: Namespace of the secret
        secret_name: Name of the secret

    Returns:
        Fingerprint of the certificate, key and optional CA certificate

    Raises:
        SecretNotFoundError: If the secret does not exist
        SecretValidationError: If the certificate or key is missing
    """
    data = _read_secret(store, namespace, secret_name)
    missing = [key for key in (TLS_CERT_KEY, TLS_PRIVATE_KEY) if not data.get(key)]
    if missing:
        raise SecretValidationError(namespace, secret_name, missing)
    relevant = {key: data[key] for key in (TLS_CERT_KEY, TLS_PRIVATE_KEY, TLS_CA_CERT_KEY) if key in data}
    return object_hash(relevant)
