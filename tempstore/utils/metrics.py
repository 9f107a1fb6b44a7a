"""Prometheus metrics for temporary storage operations."""

import logging

from prometheus_client import Counter, Gauge

logger = logging.getLogger(__name__)

TEMPSTORE_OPERATIONS_TOTAL = Counter(
    "tempstore_operations_total",
    "Total temporary storage operations",
    ["operation", "status"],
)
TEMPSTORE_LIVE_FILES = Gauge(
    "tempstore_live_files",
    "Number of temporary files currently open across all directories",
)
TEMPSTORE_BYTES_WRITTEN_TOTAL = Counter(
    "tempstore_bytes_written_total",
    "Total bytes written to on-disk temporary files",
)


def record_operation(
    operation: str,
    status: str,
    live_delta: int = 0,
    bytes_written: int | None = None,
) -> None:
    """Record a temporary storage operation metric."""
    try:
        TEMPSTORE_OPERATIONS_TOTAL.labels(
            operation=operation, status=status
        ).inc()
        if live_delta > 0:
            TEMPSTORE_LIVE_FILES.inc(live_delta)
        elif live_delta < 0:
            TEMPSTORE_LIVE_FILES.dec(-live_delta)
        if bytes_written:
            TEMPSTORE_BYTES_WRITTEN_TOTAL.inc(bytes_written)
    except Exception as e:
        logger.error("Error recording temporary storage metric: %s", e)
