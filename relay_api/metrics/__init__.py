"""Metrics module for relay observability."""

from .relay_metrics import (
    INGEST_LATENCY,
    LOG_APPEND_FAILURES,
    LOG_PENDING_LINES,
    RECORDS_ACCEPTED,
    RECORDS_REJECTED,
    SUBSCRIBERS_CONNECTED,
    SUBSCRIBERS_DROPPED,
)

__all__ = [
    "INGEST_LATENCY",
    "LOG_APPEND_FAILURES",
    "LOG_PENDING_LINES",
    "RECORDS_ACCEPTED",
    "RECORDS_REJECTED",
    "SUBSCRIBERS_CONNECTED",
    "SUBSCRIBERS_DROPPED",
]
