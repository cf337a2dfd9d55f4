"""
Prometheus metrics for time-travel sessions.

Metrics are created once by init_metrics(); until then the track_* helpers
are no-ops, so library users who never enable metrics pay nothing.

Usage:
    from timetravel.metrics import start_metrics_server, observe_checkout

    start_metrics_server(enabled=True, port=8080)
    observe_checkout("version", 0.0042)
"""

import logging
import threading
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, REGISTRY, start_http_server

logger = logging.getLogger(__name__)

CHECKOUT_DURATION: Optional[Histogram] = None
SEEKS_TOTAL: Optional[Counter] = None
TIMELINE_LENGTH: Optional[Gauge] = None

_metrics_initialized = False
_metrics_lock = threading.Lock()


def init_metrics(registry: CollectorRegistry = REGISTRY) -> None:
    """
    Create the metrics (idempotent, thread-safe).

    Args:
        registry: Registry to register with (tests pass a private one)
    """
    global CHECKOUT_DURATION, SEEKS_TOTAL, TIMELINE_LENGTH, _metrics_initialized

    with _metrics_lock:
        if _metrics_initialized:
            return

        CHECKOUT_DURATION = Histogram(
            "timetravel_checkout_duration_seconds",
            "Duration of document checkouts in seconds",
            labelnames=["target"],
            buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
            registry=registry,
        )

        SEEKS_TOTAL = Counter(
            "timetravel_seeks_total",
            "Seek requests by outcome",
            labelnames=["outcome"],
            registry=registry,
        )

        TIMELINE_LENGTH = Gauge(
            "timetravel_timeline_length",
            "Number of addressable versions in the loaded timeline",
            registry=registry,
        )

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def reset_metrics() -> None:
    """Forget initialized metrics (tests only)."""
    global CHECKOUT_DURATION, SEEKS_TOTAL, TIMELINE_LENGTH, _metrics_initialized

    with _metrics_lock:
        CHECKOUT_DURATION = None
        SEEKS_TOTAL = None
        TIMELINE_LENGTH = None
        _metrics_initialized = False


def start_metrics_server(enabled: bool, port: int) -> None:
    """
    Start the /metrics HTTP endpoint in a daemon thread.

    Args:
        enabled: Whether to start (from METRICS_ENABLED)
        port: Listen port (from METRICS_PORT)
    """
    if not enabled:
        logger.info("Metrics server disabled (METRICS_ENABLED=false)")
        return

    init_metrics()

    try:
        start_http_server(port, addr="0.0.0.0")
        logger.info(f"Metrics server started on http://0.0.0.0:{port}/metrics")
    except OSError as e:
        logger.error(f"Failed to start metrics server: {e}")


def observe_checkout(target: str, seconds: float) -> None:
    """
    Record one checkout duration.

    Args:
        target: "live" or "version"
        seconds: Checkout wall-clock duration
    """
    if CHECKOUT_DURATION is not None:
        CHECKOUT_DURATION.labels(target=target).observe(seconds)


def track_seek(outcome: str) -> None:
    """Count a seek by outcome ("ok", "rejected", "failed")."""
    if SEEKS_TOTAL is not None:
        SEEKS_TOTAL.labels(outcome=outcome).inc()


def set_timeline_length(length: int) -> None:
    if TIMELINE_LENGTH is not None:
        TIMELINE_LENGTH.set(length)
