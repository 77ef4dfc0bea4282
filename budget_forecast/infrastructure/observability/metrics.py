"""Prometheus metrics for forecast usage, candidate detection and storage health"""

from prometheus_client import Counter, Histogram

# Forecast metrics
forecast_counter = Counter(
    "budget_forecast_total",
    "Total forecasts computed",
    ["mode"],  # daily | timeline
)

forecast_duration_histogram = Histogram(
    "budget_forecast_duration_seconds",
    "Forecast computation time including storage reads",
    ["mode"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

# Subscription detection metrics
candidates_detected_histogram = Histogram(
    "budget_candidates_detected",
    "Subscription candidates returned per scan",
    buckets=[0, 1, 2, 5, 10, 20, 50],
)

subscription_transition_counter = Counter(
    "budget_subscription_transitions_total",
    "Subscription lifecycle transitions",
    ["transition"],  # confirm | ignore | activate | deactivate | reclassify | delete
)

# Storage metrics
storage_failures_counter = Counter(
    "budget_storage_failures_total",
    "Failed storage reads or writes",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_forecast(mode: str, duration_seconds: float) -> None:
    """Record one computed forecast"""
    forecast_counter.labels(mode=mode).inc()
    forecast_duration_histogram.labels(mode=mode).observe(duration_seconds)
