"""Componentes del proceso y acceso a ellos desde los endpoints."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from analysis_service.analyzer import PostureAnalyzer
from common.config import Settings

from .broadcast.hub import BroadcastHub
from .infrastructure.persistence.ndjson_appender import NdjsonLogAppender
from .ingest.coordinator import IngestCoordinator
from .state.source_store import SourceStore


@dataclass
class RelayRuntime:
    """Store, appender, hub y coordinador de un proceso.

    Se crea en ``create_app`` y vive en ``app.state.relay``; su ciclo de vida
    es el del lifespan de la app.
    """
    settings: Settings
    store: SourceStore
    appender: NdjsonLogAppender
    hub: BroadcastHub
    coordinator: IngestCoordinator
    analyzer: PostureAnalyzer


async def get_relay(request: Request) -> RelayRuntime:
    return request.app.state.relay
