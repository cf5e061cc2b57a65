"""Endpoints de análisis de postura con Gemini."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from analysis_service.analyzer import AnalysisUnavailable

from ..dependencies import RelayRuntime, get_relay
from ..schemas import AnalyzeRequest, AnalyzeResponse, ErrorOut, GeminiHealthOut

router = APIRouter(prefix="/gemini", tags=["analysis"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=GeminiHealthOut)
async def gemini_health(relay: RelayRuntime = Depends(get_relay)):
    """Confirma si el backend ve GEMINI_API_KEY y qué modelo usará."""
    return GeminiHealthOut(hasKey=relay.analyzer.available, model=relay.settings.gemini_model)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
async def gemini_analyze(
    payload: Optional[AnalyzeRequest] = None,
    relay: RelayRuntime = Depends(get_relay),
):
    payload = payload or AnalyzeRequest()
    try:
        report = await relay.analyzer.analyze(window=payload.window, source=payload.source)
    except AnalysisUnavailable as e:
        return JSONResponse(status_code=400, content={"ok": False, "error": str(e)})
    except Exception as e:  # noqa: BLE001
        logger.exception("[ANALYSIS] /gemini/analyze failed")
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e) or "Unknown error"})
    return JSONResponse(content=report)
