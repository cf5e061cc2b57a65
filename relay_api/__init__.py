"""Relay de telemetría de postura: ingesta, historial, NDJSON y broadcast."""
