"""Consultas de solo lectura: latest e historial por fuente."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Path

from ..dependencies import RelayRuntime, get_relay

router = APIRouter(tags=["telemetry"])


def _latest(relay: RelayRuntime, source_id: int) -> Dict[str, Any]:
    record = relay.store.get_latest(source_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"no records for source {source_id}")
    return record.to_dict()


def _history(relay: RelayRuntime, source_id: int) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in relay.store.get_history(source_id)]


@router.get("/latest1")
async def latest_1(relay: RelayRuntime = Depends(get_relay)):
    return _latest(relay, 1)


@router.get("/latest2")
async def latest_2(relay: RelayRuntime = Depends(get_relay)):
    return _latest(relay, 2)


@router.get("/history1")
async def history_1(relay: RelayRuntime = Depends(get_relay)):
    return _history(relay, 1)


@router.get("/history2")
async def history_2(relay: RelayRuntime = Depends(get_relay)):
    return _history(relay, 2)


@router.get("/sources/{source_id}/latest")
async def source_latest(source_id: int = Path(..., ge=1), relay: RelayRuntime = Depends(get_relay)):
    return _latest(relay, source_id)


@router.get("/sources/{source_id}/history")
async def source_history(source_id: int = Path(..., ge=1), relay: RelayRuntime = Depends(get_relay)):
    return _history(relay, source_id)
