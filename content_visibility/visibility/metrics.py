"""Prometheus metrics for visibility operations."""

from prometheus_client import Counter

VISIBILITY_OPERATIONS = Counter(
    "content_visibility_operations_total",
    "Visibility operations by outcome",
    labelnames=["operation", "kind", "result"],
)

VISIBILITY_STORE_FAILURES = Counter(
    "content_visibility_store_failures_total",
    "Visibility operations aborted by an unavailable store",
    labelnames=["operation"],
)

VISIBILITY_CACHE_LOOKUPS = Counter(
    "content_visibility_cache_lookups_total",
    "Read-through cache lookups",
    labelnames=["result"],
)
