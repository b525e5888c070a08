"""Content fingerprints used to detect restart-relevant input changes."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

from ..constants import INPUT_HASH_NAME


def object_hash(obj: Any) -> str:
    """Return the SHA-256 hex digest of the canonical JSON form of ``obj``."""
    encoded = json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def hash_of_input_hashes(inputs: Mapping[str, str]) -> str:
    """Combine named fingerprints into one, independent of collection order."""
    return object_hash([{"name": name, "value": inputs[name]} for name in sorted(inputs)])


def set_hash(hashes: Mapping[str, str] | None, key: str, value: str) -> tuple[dict[str, str], bool]:
    """Store ``value`` under ``key`` in a copy of ``hashes``.

    Returns:
        Tuple of (updated mapping, whether the value changed)
    """
    updated = dict(hashes or {})
    if updated.get(key) == value:
        return updated, False
    updated[key] = value
    return updated, True


class InputHashes:
    """Fingerprint contributions gathered during one reconciliation pass."""

    def __init__(self) -> None:
        self._inputs: dict[str, str] = {}

    def add(self, name: str, fingerprint: str) -> None:
        self._inputs[name] = fingerprint

    def combined(self) -> str:
        return hash_of_input_hashes(self._inputs)

    def settle(self, stored: Mapping[str, str] | None) -> tuple[dict[str, str], str, bool]:
        """Compare the combined fingerprint with the one stored in status.

        When it differs, the returned map is rebuilt from the new combined
        value and every individual contribution, dropping inputs that no
        longer contribute, so that the caller can persist it and end the pass.

        Args:
            stored: The ``status.hash`` map from the previous pass

        Returns:
            Tuple of (hash map to persist, combined fingerprint, changed flag)
        """
        combined = self.combined()
        hashes, changed = set_hash(stored, INPUT_HASH_NAME, combined)
        if changed:
            hashes = {INPUT_HASH_NAME: combined, **self._inputs}
        return hashes, combined, changed
