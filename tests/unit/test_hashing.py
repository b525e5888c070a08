"""Tests for input fingerprints."""

from __future__ import annotations

from memcached_operator.constants import CA_HASH_NAME, CERT_HASH_NAME, INPUT_HASH_NAME
from memcached_operator.utils.hashing import InputHashes, hash_of_input_hashes, object_hash, set_hash


class TestObjectHash:
    """Test cases for object_hash."""

    def test_key_order_does_not_matter(self) -> None:
        """Test that equal mappings hash equally."""
        assert object_hash({"a": 1, "b": [1, 2]}) == object_hash({"b": [1, 2], "a": 1})

    def test_content_change_changes_hash(self) -> None:
        """Test that different content yields a different hash."""
        assert object_hash({"memcached": "PORT=11211"}) != object_hash({"memcached": "PORT=11212"})

    def test_hex_digest(self) -> None:
        """Test the digest format."""
        digest = object_hash("x")
        assert len(digest) == 64
        int(digest, 16)


class TestCombinedHash:
    """Test cases for hash_of_input_hashes and set_hash."""

    def test_collection_order_does_not_matter(self) -> None:
        """Test that the combined hash only depends on names and values."""
        first = hash_of_input_hashes({"CA": "1", "config": "2"})
        second = hash_of_input_hashes({"config": "2", "CA": "1"})
        assert first == second

    def test_set_hash_reports_change(self) -> None:
        """Test change detection in set_hash."""
        hashes, changed = set_hash(None, INPUT_HASH_NAME, "abc")
        assert changed
        assert hashes == {INPUT_HASH_NAME: "abc"}

        hashes, changed = set_hash(hashes, INPUT_HASH_NAME, "abc")
        assert not changed


class TestInputHashes:
    """Test cases for the per-pass hash settle."""

    def test_settle_unchanged(self) -> None:
        """Test that a matching stored hash is reported unchanged."""
        inputs = InputHashes()
        inputs.add("memcached-config-data", "cfg")
        stored = {INPUT_HASH_NAME: inputs.combined(), "memcached-config-data": "cfg"}

        hashes, combined, changed = inputs.settle(stored)

        assert not changed
        assert combined == stored[INPUT_HASH_NAME]
        assert hashes == stored

    def test_settle_changed_rebuilds_map(self) -> None:
        """Test that stale contributions are dropped on change."""
        inputs = InputHashes()
        inputs.add("memcached-config-data", "cfg2")
        stored = {INPUT_HASH_NAME: "old", CA_HASH_NAME: "ca", CERT_HASH_NAME: "cert", "memcached-config-data": "cfg"}

        hashes, combined, changed = inputs.settle(stored)

        assert changed
        assert hashes == {INPUT_HASH_NAME: combined, "memcached-config-data": "cfg2"}

    def test_settle_first_pass(self) -> None:
        """Test the first settle with nothing stored."""
        inputs = InputHashes()
        inputs.add(CA_HASH_NAME, "ca")

        hashes, combined, changed = inputs.settle(None)

        assert changed
        assert hashes[CA_HASH_NAME] == "ca"
        assert hashes[INPUT_HASH_NAME] == combined
