"""Application metrics (Prometheus client).

Every metric the service exposes is declared here; the modules that own
the behaviour import and increment them.

  Counter   - only goes up; query with rate()
  Gauge     - goes up and down; a snapshot of current state
  Histogram - bucketed observations; query with histogram_quantile()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Aggregators
# ---------------------------------------------------------------------------

PROGRESS_RECOMPUTES = Counter(
    "course_progress_recomputes_total",
    "Course progress snapshots recomputed after a lecture progress write",
)

RATING_RECOMPUTES = Counter(
    "course_rating_recomputes_total",
    "Course rating aggregates recomputed after a review write",
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
