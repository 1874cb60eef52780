"""Prometheus metrics middleware and check-in metrics.

Features:
- HTTP request metrics (latency, count, errors)
- Check-in outcomes and code claims
- Inventory level and claim contention
- Status cache hit rate
"""

from fastapi import FastAPI
from prometheus_client import Counter, Gauge, Info
from prometheus_fastapi_instrumentator import Instrumentator, metrics


# =============================================================================
# Custom Metrics
# =============================================================================

# Application info
APP_INFO = Info("checkin_app", "Application information")

CHECKINS_TOTAL = Counter(
    "checkin_checkins_total",
    "Check-in attempts by outcome",
    ["status"],  # completed, pending_distribution, already_checked_in
)

CODES_CLAIMED = Counter(
    "checkin_codes_claimed_total",
    "Redemption codes claimed from inventory",
    ["distribution_type"],  # checkin, gift, batch, pending_resolve
)

CLAIM_CONFLICTS = Counter(
    "checkin_claim_conflicts_total",
    "Code claims lost to a concurrent claimant",
)

CHECKIN_RETRIES = Counter(
    "checkin_retries_total",
    "Check-in transactions retried after a transient database error",
)

INVENTORY_AVAILABLE = Gauge(
    "checkin_inventory_available",
    "Undistributed, unused redemption codes",
)

PENDING_RESOLVED = Counter(
    "checkin_pending_resolved_total",
    "Pending distributions resolved with a code",
)

# Cache metrics
CACHE_HITS = Counter(
    "checkin_cache_hits_total",
    "Cache hit count",
    ["cache_type"],
)

CACHE_MISSES = Counter(
    "checkin_cache_misses_total",
    "Cache miss count",
    ["cache_type"],
)


# =============================================================================
# Instrumentator Setup
# =============================================================================

def setup_prometheus(app: FastAPI, app_version: str = "1.0.0") -> Instrumentator:
    """Setup Prometheus metrics instrumentation.

    Args:
        app: FastAPI application instance
        app_version: Application version string

    Returns:
        Configured Instrumentator instance
    """
    APP_INFO.info({
        "version": app_version,
        "app_name": "daily-checkin",
    })

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/health", "/metrics"],
        inprogress_name="checkin_http_requests_inprogress",
        inprogress_labels=True,
    )

    instrumentator.add(
        metrics.default(
            metric_namespace="checkin",
            metric_subsystem="http",
            latency_highr_buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5),
        )
    )

    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint="/metrics", include_in_schema=True, tags=["Monitoring"])

    return instrumentator


# =============================================================================
# Metric Helper Functions
# =============================================================================

def record_checkin(status: str) -> None:
    """Record a check-in outcome.

    Args:
        status: completed, pending_distribution or already_checked_in
    """
    CHECKINS_TOTAL.labels(status=status).inc()


def record_code_claimed(distribution_type: str) -> None:
    """Record a successful code claim.

    Args:
        distribution_type: checkin, gift, batch or pending_resolve
    """
    CODES_CLAIMED.labels(distribution_type=distribution_type).inc()
    INVENTORY_AVAILABLE.dec()


def record_claim_conflict() -> None:
    CLAIM_CONFLICTS.inc()


def record_checkin_retry() -> None:
    CHECKIN_RETRIES.inc()


def record_pending_resolved(count: int) -> None:
    PENDING_RESOLVED.inc(count)


def update_inventory_available(count: int) -> None:
    """Set the available-codes gauge from a fresh count."""
    INVENTORY_AVAILABLE.set(count)


def record_cache_access(cache_type: str, hit: bool) -> None:
    """Record cache access.

    Args:
        cache_type: Type of cache (checkin_status)
        hit: True if cache hit, False if miss
    """
    if hit:
        CACHE_HITS.labels(cache_type=cache_type).inc()
    else:
        CACHE_MISSES.labels(cache_type=cache_type).inc()
