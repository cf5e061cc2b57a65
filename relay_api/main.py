from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from analysis_service.analyzer import PostureAnalyzer, TextGenerator
from analysis_service.gemini_client import GeminiClient
from common.config import Settings, get_settings

from .broadcast.hub import BroadcastHub
from .core.monitoring.stats import Stats
from .dependencies import RelayRuntime
from .endpoints import analysis_router, health_router, ingest_router, telemetry_router
from .infrastructure.persistence.ndjson_appender import NdjsonLogAppender
from .ingest.coordinator import IngestCoordinator
from .state.source_store import SourceStore
from .transports.websocket.handler import websocket_stream

logger = logging.getLogger(__name__)

# Fuentes con fichero NDJSON abierto al arrancar (sensor #1 y #2)
KNOWN_SOURCES = (1, 2)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def build_runtime(settings: Settings, llm_client: Optional[TextGenerator] = None) -> RelayRuntime:
    store = SourceStore(settings.max_buffer)
    appender = NdjsonLogAppender(
        settings.log_path_for,
        drain_timeout_seconds=settings.log_drain_timeout_seconds,
    )
    hub = BroadcastHub(store)
    coordinator = IngestCoordinator(store, appender, hub, Stats())

    if llm_client is None and settings.gemini_api_key:
        llm_client = GeminiClient(
            settings.gemini_api_key,
            model=settings.gemini_model,
            timeout_seconds=settings.gemini_timeout_seconds,
        )
    analyzer = PostureAnalyzer(
        store,
        llm_client,
        default_window=settings.analysis_default_window,
        max_window=settings.analysis_max_window,
        slouch_deg=settings.slouch_deg,
    )
    return RelayRuntime(
        settings=settings,
        store=store,
        appender=appender,
        hub=hub,
        coordinator=coordinator,
        analyzer=analyzer,
    )


def create_app(
    settings: Optional[Settings] = None,
    llm_client: Optional[TextGenerator] = None,
) -> FastAPI:
    """Create a FastAPI instance wired to a fresh relay runtime.

    Raises:
        ConfigurationError: invalid settings (at creation) or an unopenable
            telemetry log (at startup).
    """
    settings = settings or get_settings()
    relay = build_runtime(settings, llm_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        await relay.appender.start(KNOWN_SOURCES)
        if not settings.has_gemini_key:
            logger.warning(
                "[ANALYSIS] GEMINI_API_KEY is not set. Add GEMINI_API_KEY=... to "
                "Gemini-Integration-Key.env if using Gemini."
            )
        logger.info("Backend listening on http://localhost:%d", settings.port)
        logger.info("WebSocket on ws://localhost:%d/ws", settings.port)
        logger.info("Gemini model: %s", settings.gemini_model)
        try:
            yield
        finally:
            relay.hub.close_all()
            await relay.appender.close()
            logger.info("Relay stopped. %s", relay.coordinator.stats)

    app = FastAPI(title="Posture Telemetry Relay", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.relay = relay

    app.include_router(health_router)
    app.include_router(ingest_router)
    app.include_router(telemetry_router)
    app.include_router(analysis_router)
    app.add_api_websocket_route("/ws", websocket_stream)
    app.add_api_websocket_route("/", websocket_stream)

    return app


app = create_app()
