# backend/vendor_search/services/search/metrics.py
"""
Prometheus metrics for tiered vendor search.

Provides observability for:
- Search latency by stage
- Tier sizes and Tier 4 activation
- Zero-result searches
- Degradation events (tier timeouts/failures, area fallback, low confidence)
"""
from __future__ import annotations

from typing import Dict, Iterable

from prometheus_client import Counter, Histogram

from vendor_search.monitoring.prometheus_metrics import REGISTRY, PrometheusMetrics

# Latency metrics
SEARCH_LATENCY = Histogram(
    "vendor_search_latency_ms",
    "Search latency in milliseconds",
    ["stage"],
    registry=REGISTRY,
    buckets=[5, 10, 25, 50, 100, 200, 500, 1000, 2000, 5000],
)

# Quality metrics
SEARCH_RESULT_COUNT = Histogram(
    "vendor_search_result_count",
    "Number of vendors matched across all tiers",
    registry=REGISTRY,
    buckets=[0, 1, 5, 10, 20, 50, 100, 150],
)

TIER_RESULT_COUNT = Histogram(
    "vendor_search_tier_result_count",
    "Number of vendors contributed by each tier",
    ["tier"],
    registry=REGISTRY,
    buckets=[0, 1, 5, 10, 20, 30, 50],
)

SEARCH_ZERO_RESULTS = Counter(
    "vendor_search_zero_results_total",
    "Count of searches returning zero results",
    ["has_query"],
    registry=REGISTRY,
)

ADJACENT_TIER_TRIGGERED = Counter(
    "vendor_search_adjacent_tier_triggered_total",
    "Count of searches that expanded into adjacent cities",
    registry=REGISTRY,
)

TIER_FAILURES = Counter(
    "vendor_search_tier_failures_total",
    "Tier queries that timed out or failed",
    ["tier", "reason"],
    registry=REGISTRY,
)

DEGRADATION_EVENTS = Counter(
    "vendor_search_degradation_total",
    "Count of degradation events",
    ["component"],
    registry=REGISTRY,
)

# Search volume
SEARCH_REQUESTS = Counter(
    "vendor_search_requests_total",
    "Total search requests",
    ["status"],
    registry=REGISTRY,
)


def record_search_metrics(
    total_latency_ms: int,
    stage_latencies: Dict[str, int],
    total_results: int,
    tier_breakdown: Dict[str, int],
    has_query: bool,
    adjacent_triggered: bool,
    degradations: Iterable[str],
) -> None:
    """Record all metrics for a search request."""
    SEARCH_LATENCY.labels(stage="total").observe(total_latency_ms)
    for stage, latency in stage_latencies.items():
        SEARCH_LATENCY.labels(stage=stage).observe(latency)

    SEARCH_RESULT_COUNT.observe(total_results)
    for tier, count in tier_breakdown.items():
        TIER_RESULT_COUNT.labels(tier=tier).observe(count)

    if total_results == 0:
        SEARCH_ZERO_RESULTS.labels(has_query="true" if has_query else "false").inc()

    if adjacent_triggered:
        ADJACENT_TIER_TRIGGERED.inc()

    for reason in degradations:
        DEGRADATION_EVENTS.labels(component=reason).inc()

    status = "success" if total_results > 0 else "zero_results"
    SEARCH_REQUESTS.labels(status=status).inc()

    PrometheusMetrics._invalidate_cache()


def record_tier_failure(tier: str, reason: str) -> None:
    """Record a tier query that timed out or raised."""
    TIER_FAILURES.labels(tier=tier, reason=reason).inc()
    PrometheusMetrics._invalidate_cache()


def record_search_error(status: str) -> None:
    """Record a search rejected before ranking (validation / resolution errors)."""
    SEARCH_REQUESTS.labels(status=status).inc()
    PrometheusMetrics._invalidate_cache()


__all__ = [
    "SEARCH_LATENCY",
    "SEARCH_RESULT_COUNT",
    "TIER_RESULT_COUNT",
    "SEARCH_ZERO_RESULTS",
    "ADJACENT_TIER_TRIGGERED",
    "TIER_FAILURES",
    "DEGRADATION_EVENTS",
    "SEARCH_REQUESTS",
    "record_search_metrics",
    "record_tier_failure",
    "record_search_error",
]
