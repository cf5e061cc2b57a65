from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class IngestAck(BaseModel):
    ok: bool = True


class ErrorOut(BaseModel):
    ok: bool = False
    error: str


class GeminiHealthOut(BaseModel):
    ok: bool = True
    hasKey: bool
    model: str


class AnalyzeRequest(BaseModel):
    # Se aceptan números o strings numéricos; la validación real está en clamp_window
    window: Optional[Any] = None
    source: Any = Field(default="both")


class AnalyzeResponse(BaseModel):
    ok: bool = True
    window: int
    source: Any
    gemini_used: bool
    result: Any
    raw_if_unparsed: Optional[str] = None


class StatsOut(BaseModel):
    ingest: Dict[str, Any]
    subscribers: int
    published: int
    subscribers_dropped: int
    log_pending_lines: int
    log_lines_written: int
    log_lines_failed: int
