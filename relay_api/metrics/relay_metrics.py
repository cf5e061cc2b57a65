"""Métricas Prometheus del relay.

Se registran una sola vez en el REGISTRY global de prometheus_client y se
exponen en ``GET /metrics``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

RECORDS_ACCEPTED = Counter(
    'relay_records_accepted_total',
    'Records accepted by the ingest coordinator',
    ['source', 'kind']  # sample, event
)
RECORDS_REJECTED = Counter(
    'relay_records_rejected_total',
    'Records rejected by the normalizer',
    ['source']
)
INGEST_LATENCY = Histogram(
    'relay_ingest_seconds',
    'Synchronous ingest path latency (store + enqueue log + publish)',
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1]
)
LOG_APPEND_FAILURES = Counter(
    'relay_log_append_failures_total',
    'NDJSON lines that could not be written',
    ['source']
)
LOG_PENDING_LINES = Gauge(
    'relay_log_pending_lines',
    'Lines queued for the NDJSON writers'
)
SUBSCRIBERS_CONNECTED = Gauge(
    'relay_subscribers_connected',
    'Live broadcast subscribers'
)
SUBSCRIBERS_DROPPED = Counter(
    'relay_subscribers_dropped_total',
    'Subscribers removed after a transport failure'
)
