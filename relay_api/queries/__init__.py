"""Consultas de solo lectura sobre el store."""

from .analysis_window import clamp_window, extract_window, parse_source_selector

__all__ = ["clamp_window", "extract_window", "parse_source_selector"]
