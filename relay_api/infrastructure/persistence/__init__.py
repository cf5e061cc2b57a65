"""Persistencia append-only de registros."""

from .ndjson_appender import NdjsonLogAppender

__all__ = ["NdjsonLogAppender"]
