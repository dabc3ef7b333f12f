"""Prometheus metrics for monitoring confidence tiers, batch runs and data fallbacks"""

from prometheus_client import Counter, Histogram

# Confidence metrics
confidence_update_counter = Counter(
    "budget_confidence_update_total",
    "Planned expense confidence levels persisted",
    ["level"],  # LOW | MEDIUM | HIGH
)

confidence_update_failure_counter = Counter(
    "budget_confidence_update_failures_total",
    "Planned expense confidence updates that failed",
    ["stage"],  # not_found | persistence | unexpected
)

data_fallback_counter = Counter(
    "budget_confidence_data_fallback_total",
    "Reads that failed and were replaced by empty data",
    ["collection"],  # wallets | income_sources | transactions | planned_expenses
)

# Batch metrics
batch_duration_histogram = Histogram(
    "budget_confidence_batch_duration_seconds",
    "Time to recompute all planned expenses for one user",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

queued_users_counter = Counter(
    "budget_confidence_queued_users_total",
    "Users queued for a debounced confidence recompute",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_confidence_update(confidence_level: str) -> None:
    """Record tier distribution of persisted confidence levels"""
    confidence_update_counter.labels(level=confidence_level).inc()
