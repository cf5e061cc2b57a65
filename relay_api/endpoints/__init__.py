"""Módulo de endpoints HTTP.

Contiene todos los endpoints del relay organizados por función.
"""

from .analysis import router as analysis_router
from .health import router as health_router
from .ingest import router as ingest_router
from .telemetry import router as telemetry_router

__all__ = [
    "analysis_router",
    "health_router",
    "ingest_router",
    "telemetry_router",
]
