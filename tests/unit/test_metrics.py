"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from memcached_operator.metrics import (
    api_call_duration_seconds,
    api_call_total,
    child_resource_operations_total,
    error_total,
    input_hash_changes_total,
    rate_limit_hits_total,
    reconcile_duration_seconds,
    reconcile_requests_total,
    reconcile_total,
    resource_status_total,
)


class TestMetricsExist:
    """Test that all expected metrics are defined."""

    def test_counter_names(self) -> None:
        """Test counter names without the _total suffix."""
        # Prometheus counters don't include "_total" in their _name attribute
        assert reconcile_total._name == "memcached_operator_reconcile"
        assert error_total._name == "memcached_operator_error"
        assert resource_status_total._name == "memcached_operator_resource_status"
        assert child_resource_operations_total._name == "memcached_operator_child_resource_operations"
        assert input_hash_changes_total._name == "memcached_operator_input_hash_changes"
        assert reconcile_requests_total._name == "memcached_operator_reconcile_requests"
        assert api_call_total._name == "memcached_operator_api_call"
        assert rate_limit_hits_total._name == "memcached_operator_rate_limit_hits"

    def test_histogram_names(self) -> None:
        """Test histogram names."""
        assert reconcile_duration_seconds._name == "memcached_operator_reconcile_duration_seconds"
        assert api_call_duration_seconds._name == "memcached_operator_api_call_duration_seconds"


class TestMetricsRecord:
    """Test that labelled metrics record values."""

    def test_child_resource_operations(self) -> None:
        """Test incrementing the child resource counter."""
        labels = {"resource": "ConfigMap", "operation": "created"}
        before = REGISTRY.get_sample_value("memcached_operator_child_resource_operations_total", labels) or 0

        child_resource_operations_total.labels(**labels).inc()

        after = REGISTRY.get_sample_value("memcached_operator_child_resource_operations_total", labels)
        assert after == before + 1

    def test_reconcile_duration(self) -> None:
        """Test observing a reconcile duration."""
        labels = {"kind": "Memcached"}
        before = REGISTRY.get_sample_value("memcached_operator_reconcile_duration_seconds_count", labels) or 0

        reconcile_duration_seconds.labels(**labels).observe(0.2)

        after = REGISTRY.get_sample_value("memcached_operator_reconcile_duration_seconds_count", labels)
        assert after == before + 1
