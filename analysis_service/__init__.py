"""Servicio de análisis de postura (resumen + LLM)."""

from .analyzer import AnalysisUnavailable, PostureAnalyzer
from .gemini_client import GeminiClient, GeminiError
from .summary import PitchStats, build_fallback_report, build_telemetry_summary, compute_pitch_stats

__all__ = [
    "AnalysisUnavailable",
    "PostureAnalyzer",
    "GeminiClient",
    "GeminiError",
    "PitchStats",
    "build_fallback_report",
    "build_telemetry_summary",
    "compute_pitch_stats",
]
