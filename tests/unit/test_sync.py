"""Tests for child resource synchronization."""

from __future__ import annotations

from conftest import FakeStore, make_instance
from memcached_operator.builders.config import config_map
from memcached_operator.builders.service import headless_service
from memcached_operator.builders.statefulset import stateful_set
from memcached_operator.constants import KIND_CONFIG_MAP, KIND_SERVICE
from memcached_operator.services.cluster.sync import (
    OP_CREATED,
    OP_PATCHED,
    OP_UNCHANGED,
    create_or_patch,
    is_subset,
    merge_patch_diff,
    sync_service,
    sync_stateful_set,
)


class TestIsSubset:
    """Test cases for the managed field comparison."""

    def test_extra_live_fields_ignored(self) -> None:
        """Test that server populated fields do not count as drift."""
        desired = {"spec": {"clusterIP": "None"}}
        current = {"spec": {"clusterIP": "None", "ipFamilies": ["IPv4"]}, "status": {}}
        assert is_subset(desired, current)

    def test_changed_value(self) -> None:
        """Test that a differing value is drift."""
        assert not is_subset({"spec": {"replicas": 2}}, {"spec": {"replicas": 1}})

    def test_missing_key(self) -> None:
        """Test that a missing managed key is drift."""
        assert not is_subset({"data": {"a": "1"}}, {"metadata": {}})

    def test_lists_compare_elementwise(self) -> None:
        """Test list comparison with server defaults inside elements."""
        desired = {"ports": [{"port": 11211}]}
        assert is_subset(desired, {"ports": [{"port": 11211, "protocol": "TCP"}]})
        assert not is_subset(desired, {"ports": [{"port": 11211}, {"port": 11212}]})


class TestMergePatchDiff:
    """Test cases for merge_patch_diff."""

    def test_removed_keys_are_nulled(self) -> None:
        """Test that keys missing from the new document are deleted."""
        old = {"hash": {"input": "1", "CA": "2"}, "readyCount": 1}
        new = {"hash": {"input": "3"}, "readyCount": 1}

        assert merge_patch_diff(old, new) == {"hash": {"input": "3", "CA": None}}

    def test_identical_documents(self) -> None:
        """Test that equal documents produce an empty patch."""
        assert merge_patch_diff({"a": [1]}, {"a": [1]}) == {}

    def test_lists_replaced(self) -> None:
        """Test that a changed list is sent whole."""
        assert merge_patch_diff({"serverList": ["a"]}, {"serverList": ["a", "b"]}) == {"serverList": ["a", "b"]}


class TestCreateOrPatch:
    """Test cases for create_or_patch."""

    def test_create_then_unchanged(self, store: FakeStore) -> None:
        """Test create followed by a no-op."""
        desired = config_map(make_instance(), {"memcached": "PORT=11211"})

        first = create_or_patch(store, desired)
        second = create_or_patch(store, desired)

        assert first.operation == OP_CREATED
        assert first.changed
        assert second.operation == OP_UNCHANGED
        assert not second.changed
        assert [c[0] for c in store.mutations()] == ["create"]

    def test_patch_on_drift(self, store: FakeStore) -> None:
        """Test that changed content is patched."""
        instance = make_instance()
        create_or_patch(store, config_map(instance, {"memcached": "PORT=11211"}))

        result = create_or_patch(store, config_map(instance, {"memcached": "PORT=11212"}))

        assert result.operation == OP_PATCHED
        assert store.lookup(KIND_CONFIG_MAP, "memcached-config-data")["data"]["memcached"] == "PORT=11212"


class TestSyncService:
    """Test cases for sync_service."""

    def test_ready_when_ip_family_assigned(self, store: FakeStore) -> None:
        """Test that an assigned IP family needs no requeue."""
        result = sync_service(store, headless_service(make_instance()), 5.0)

        assert not result.requeue
        assert result.requeue_after is None
        assert store.lookup(KIND_SERVICE, "memcached")["spec"]["ipFamilies"] == ["IPv4"]

    def test_requeue_without_ip_family(self) -> None:
        """Test the requeue while the service has no IP family."""
        store = FakeStore(ip_family=None)

        result = sync_service(store, headless_service(make_instance()), 5.0)

        assert result.requeue
        assert result.requeue_after == 5.0


class TestSyncStatefulSet:
    """Test cases for sync_stateful_set."""

    def test_requeue_after_create(self, store: FakeStore) -> None:
        """Test that a new StatefulSet asks for a requeue."""
        result = sync_stateful_set(store, stateful_set(make_instance(), "abc"), 5.0)

        assert result.operation == OP_CREATED
        assert result.requeue_after == 5.0

    def test_requeue_until_generation_observed(self, store: FakeStore) -> None:
        """Test the requeue while the rollout is pending."""
        instance = make_instance()
        sync_stateful_set(store, stateful_set(instance, "abc"), 5.0)
        store.set_stateful_set_status(1)

        settled = sync_stateful_set(store, stateful_set(instance, "abc"), 5.0)
        assert settled.operation == OP_UNCHANGED
        assert not settled.requeue

        rolled = sync_stateful_set(store, stateful_set(instance, "def"), 5.0)
        assert rolled.operation == OP_PATCHED
        assert rolled.requeue
        assert rolled.requeue_after == 5.0
