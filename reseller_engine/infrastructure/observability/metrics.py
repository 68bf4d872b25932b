"""Prometheus metrics for settlements, sale commits and renderer webhooks"""

from prometheus_client import Counter, Histogram

# Settlement metrics
settlement_counter = Counter(
    "reseller_settlement_total",
    "Settlements computed",
    ["kind", "financing"],  # quote | sale, financed | cash
)

unbalanced_payment_counter = Counter(
    "reseller_unbalanced_payment_total",
    "Sales rejected because payments did not match the final total",
)

engine_error_counter = Counter(
    "reseller_engine_errors_total",
    "Domain errors raised while pricing",
    ["error"],
)

# Persistence boundary metrics
sale_committed_counter = Counter(
    "reseller_sale_committed_total",
    "Sales accepted by the persistence boundary",
)

persistence_conflict_counter = Counter(
    "reseller_persistence_conflict_total",
    "Sales rejected by the persistence boundary",
    ["reason"],  # stock | serial | variant
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Document renderer webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(kind: str, financed: bool) -> None:
    """Record settlement metrics for monitoring financed vs cash share"""
    financing = "financed" if financed else "cash"
    settlement_counter.labels(kind=kind, financing=financing).inc()


def record_engine_error(error: Exception) -> None:
    engine_error_counter.labels(error=type(error).__name__).inc()
