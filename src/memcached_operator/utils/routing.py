"""Reverse indexes from referenced secrets to the Memcached instances using them."""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from ..models import TLSSpec

Identity = tuple[str, str]


@dataclass(frozen=True)
class ReconcileRequest:
    """Request to run a reconciliation pass for one instance."""

    namespace: str
    name: str


class SecretIndex:
    """Mapping of (namespace, secret name) to the instances referencing it.

    Each instance references at most one secret per index; ``update``
    replaces whatever the instance referenced before.
    """

    def __init__(self, extract: Callable[[TLSSpec], str | None]):
        self._extract = extract
        self._by_secret: dict[Identity, set[Identity]] = defaultdict(set)
        self._by_instance: dict[Identity, Identity] = {}

    def update(self, instance: Identity, tls: TLSSpec) -> None:
        self.remove(instance)
        secret_name = self._extract(tls)
        if not secret_name:
            return
        key = (instance[0], secret_name)
        self._by_secret[key].add(instance)
        self._by_instance[instance] = key

    def remove(self, instance: Identity) -> None:
        key = self._by_instance.pop(instance, None)
        if key is None:
            return
        refs = self._by_secret.get(key)
        if refs is not None:
            refs.discard(instance)
            if not refs:
                del self._by_secret[key]

    def lookup(self, namespace: str, secret_name: str) -> list[Identity]:
        return sorted(self._by_secret.get((namespace, secret_name), ()))


def _ca_secret(tls: TLSSpec) -> str | None:
    return tls.ca_bundle_secret_name


def _cert_secret(tls: TLSSpec) -> str | None:
    return tls.secret_name if tls.enabled() else None


class DependencyRouter:
    """Translates secret changes into reconcile requests.

    Keeps one index for CA bundle references and one for server certificate
    references. Lookups are scoped to the secret's namespace. An instance
    found in both indexes yields two requests; coalescing is left to the
    scheduler.
    """

    def __init__(self) -> None:
        self.ca_index = SecretIndex(_ca_secret)
        self.cert_index = SecretIndex(_cert_secret)
        self._lock = threading.Lock()

    def _indexes(self) -> tuple[SecretIndex, SecretIndex]:
        return self.ca_index, self.cert_index

    def update(self, namespace: str, name: str, spec: dict[str, Any] | None) -> None:
        """Refresh the references of one instance from its raw spec."""
        tls = TLSSpec.model_validate((spec or {}).get("tls") or {})
        with self._lock:
            for index in self._indexes():
                index.update((namespace, name), tls)

    def remove(self, namespace: str, name: str) -> None:
        with self._lock:
            for index in self._indexes():
                index.remove((namespace, name))

    def rebuild(self, instances: Iterable[dict[str, Any]]) -> None:
        """Replace the indexes with the references of ``instances``."""
        ca_index, cert_index = SecretIndex(_ca_secret), SecretIndex(_cert_secret)
        for body in instances:
            meta = body.get("metadata", {})
            tls = TLSSpec.model_validate((body.get("spec") or {}).get("tls") or {})
            identity = (meta["namespace"], meta["name"])
            ca_index.update(identity, tls)
            cert_index.update(identity, tls)
        with self._lock:
            self.ca_index, self.cert_index = ca_index, cert_index

    def requests_for(self, namespace: str, secret_name: str) -> list[ReconcileRequest]:
        """Return one request per referencing instance found in each index."""
        with self._lock:
            matches = [
                identity
                for index in self._indexes()
                for identity in index.lookup(namespace, secret_name)
            ]
        return [ReconcileRequest(ns, name) for ns, name in matches]
