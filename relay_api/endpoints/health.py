"""Health, índice de rutas, métricas y estadísticas."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..dependencies import RelayRuntime, get_relay
from ..schemas import StatsOut

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness probe — always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/", response_class=PlainTextResponse)
async def index(relay: RelayRuntime = Depends(get_relay)):
    settings = relay.settings
    return (
        "OK\n"
        f"POST /imu (source 1) -> {settings.telemetry1_path.name}\n"
        f"POST /imu2 (source 2) -> {settings.telemetry2_path.name}\n"
        "GET  /gemini/health\n"
        "POST /gemini/analyze\n"
        f"WS: ws://localhost:{settings.port}/ws\n"
    )


@router.get("/metrics")
async def metrics():
    """Prometheus text exposition."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/stats", response_model=StatsOut)
async def stats(relay: RelayRuntime = Depends(get_relay)):
    return StatsOut(
        ingest=relay.coordinator.stats.to_dict(),
        subscribers=relay.hub.subscriber_count,
        published=relay.hub.published,
        subscribers_dropped=relay.hub.dropped,
        log_pending_lines=relay.appender.pending,
        log_lines_written=relay.appender.lines_written,
        log_lines_failed=relay.appender.lines_failed,
    )
