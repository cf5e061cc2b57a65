"""Endpoints de ingesta: uno por sensor (/imu, /imu2) y uno genérico."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse

from ..dependencies import RelayRuntime, get_relay
from ..schemas import ErrorOut, IngestAck

router = APIRouter(tags=["ingest"])
logger = logging.getLogger(__name__)

_RESPONSES = {400: {"model": ErrorOut}}


async def _read_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        # JSON inválido o vacío: el normalizador lo rechaza como "no objeto"
        return None


def _ingest(relay: RelayRuntime, body: Any, source_id: int) -> JSONResponse:
    outcome = relay.coordinator.ingest(body, source_id)
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_payload())


@router.post("/imu", response_model=IngestAck, responses=_RESPONSES)
async def ingest_source_1(request: Request, relay: RelayRuntime = Depends(get_relay)):
    """Sensor #1."""
    return _ingest(relay, await _read_body(request), 1)


@router.post("/imu2", response_model=IngestAck, responses=_RESPONSES)
async def ingest_source_2(request: Request, relay: RelayRuntime = Depends(get_relay)):
    """Sensor #2."""
    return _ingest(relay, await _read_body(request), 2)


@router.post("/ingest/{source_id}", response_model=IngestAck, responses=_RESPONSES)
async def ingest_source(
    request: Request,
    source_id: int = Path(..., ge=1),
    relay: RelayRuntime = Depends(get_relay),
):
    """Ingesta para cualquier fuente (id entero positivo)."""
    return _ingest(relay, await _read_body(request), source_id)
