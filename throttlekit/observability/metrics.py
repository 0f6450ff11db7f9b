"""
Prometheus metrics for rate limiting.
"""

from prometheus_client import REGISTRY as DEFAULT_REGISTRY
from prometheus_client import Counter, Histogram, generate_latest

rate_limit_decisions_total = Counter(
    "rate_limit_decisions_total",
    "Rate limit decisions by outcome",
    ["strategy", "decision"],
)

rate_limit_check_duration_seconds = Histogram(
    "rate_limit_check_duration_seconds",
    "Latency of a rate limit check including store round trips",
    ["strategy"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(DEFAULT_REGISTRY)
