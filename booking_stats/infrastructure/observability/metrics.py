"""Prometheus metrics for cache efficiency, data quality and computation latency"""

from prometheus_client import Counter, Histogram

# Result cache
cache_hit_counter = Counter(
    "booking_stats_cache_hits_total",
    "Statistics served from the result cache",
    ["kind"],  # summary | category
)

cache_miss_counter = Counter(
    "booking_stats_cache_misses_total",
    "Statistics computed because no cache entry existed",
    ["kind"],
)

cache_eviction_counter = Counter(
    "booking_stats_cache_evictions_total",
    "Cache entries evicted to respect the size bound",
)

# Data quality
records_dropped_counter = Counter(
    "booking_stats_records_dropped_total",
    "Records left out of a grouping because their key field was unusable",
    ["dimension"],
)

reconciliation_mismatch_counter = Counter(
    "booking_stats_reconciliation_mismatch_total",
    "Payment-channel totals that drifted from Total Paid beyond tolerance",
)

# Computation
stats_duration_histogram = Histogram(
    "booking_stats_computation_seconds",
    "Time spent computing a statistics snapshot",
    ["kind"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_dropped(dimension: str, count: int) -> None:
    """Count records a grouping could not place"""
    if count > 0:
        records_dropped_counter.labels(dimension=dimension).inc(count)
