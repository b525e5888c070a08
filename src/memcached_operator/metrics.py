"""Prometheus metrics for the Memcached Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "memcached_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "memcached_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "memcached_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "memcached_operator_resource_status_total",
    "Readiness observed at the end of a reconciliation",
    ["kind", "status"],
)

# Child resource metrics
child_resource_operations_total = Counter(
    "memcached_operator_child_resource_operations_total",
    "Total number of child resource synchronizations",
    ["resource", "operation"],
)

input_hash_changes_total = Counter(
    "memcached_operator_input_hash_changes_total",
    "Total number of input hash changes that forced a workload restart",
    ["kind"],
)

# Requeue routing metrics
reconcile_requests_total = Counter(
    "memcached_operator_reconcile_requests_total",
    "Total number of reconcile requests emitted from watched sources",
    ["source", "result"],
)

# API call metrics
api_call_total = Counter(
    "memcached_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "memcached_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "memcached_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
