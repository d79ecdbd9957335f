"""Prometheus metrics for savings creation, deposit verification and webhook delivery"""

from prometheus_client import Counter, Histogram

# Savings metrics
savings_created_counter = Counter(
    "qurban_savings_created_total",
    "Savings accounts opened",
    ["frequency"],  # weekly | monthly
)

deposit_recorded_counter = Counter(
    "qurban_savings_deposit_recorded_total",
    "Deposits recorded in pending state",
)

deposit_transition_counter = Counter(
    "qurban_savings_deposit_transition_total",
    "Deposit verification outcomes",
    ["outcome"],  # verified | rejected | already_finalized | not_found | error
)

savings_completed_counter = Counter(
    "qurban_savings_completed_total",
    "Savings accounts that reached their target",
)

bulk_batch_size_histogram = Histogram(
    "qurban_savings_bulk_verify_batch_size",
    "Deposits per bulk verification request",
    buckets=[1, 5, 10, 25, 50, 100, 250],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Ledger webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Catalog API metrics
catalog_fetch_failures_counter = Counter(
    "catalog_fetch_failures_total",
    "Failed package/settings lookups",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transition(outcome: str, completed: bool = False) -> None:
    """Count a verify/reject outcome, and the completion it caused"""
    deposit_transition_counter.labels(outcome=outcome).inc()
    if completed:
        savings_completed_counter.inc()
