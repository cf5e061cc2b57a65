"""Análisis de postura bajo demanda.

Este módulo:
- NO muta el store; solo lee una ventana de samples (ver relay_api.queries).
- Resume la ventana en texto y pide al LLM un informe JSON estricto.
- Si la respuesta no es JSON, devuelve el informe local de fallback junto
  con el texto crudo para depuración.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import orjson

from relay_api.queries.analysis_window import clamp_window, extract_window, parse_source_selector
from relay_api.state.source_store import SourceStore

from .summary import DEFAULT_SLOUCH_DEG, build_fallback_report, build_telemetry_summary

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        ...


class AnalysisUnavailable(RuntimeError):
    """No hay cliente de LLM configurado (falta GEMINI_API_KEY)."""


def build_system_prompt(slouch_deg: float) -> str:
    return "\n".join([
        "You are an assistant analyzing posture telemetry from a wearable IMU.",
        "You must return STRICT JSON only (no markdown, no extra commentary).",
        "Your job: summarize posture quality and provide actionable insights.",
        "",
        "JSON schema:",
        "{",
        '  "overall": "good|okay|bad",',
        '  "key_findings": ["..."],',
        '  "metrics": {',
        '    "samples": number,',
        '    "pitch_min_deg": number|null,',
        '    "pitch_avg_deg": number|null,',
        '    "pitch_max_deg": number|null,',
        f'    "slouch_threshold_deg": {slouch_deg:g},',
        '    "slouch_percent": number',
        "  },",
        '  "recommendations": ["..."],',
        '  "confidence": "low|medium|high"',
        "}",
        "",
        "Rules:",
        "- Keep it concise (max 5 findings, max 5 recommendations).",
        "- If samples are few or noisy, lower confidence.",
        "- Do not mention medical diagnosis. This is educational feedback only.",
    ])


def build_user_prompt(telemetry_text: str) -> str:
    return "\n".join([
        "Analyze the posture telemetry below and produce JSON using the schema.",
        "",
        "Telemetry summary:",
        telemetry_text,
    ])


class PostureAnalyzer:
    """Envuelve la ventana de análisis + una llamada opaca al LLM."""

    def __init__(
        self,
        store: SourceStore,
        client: Optional[TextGenerator] = None,
        *,
        default_window: int = 300,
        max_window: int = 1000,
        slouch_deg: float = DEFAULT_SLOUCH_DEG,
    ):
        self._store = store
        self._client = client
        self._default_window = int(default_window)
        self._max_window = int(max_window)
        self._slouch_deg = float(slouch_deg)

    @property
    def available(self) -> bool:
        return self._client is not None

    async def analyze(self, window: Any = None, source: Any = "both") -> Dict[str, Any]:
        """Informe estructurado sobre la ventana pedida.

        Raises:
            AnalysisUnavailable: si no hay cliente de LLM.
        """
        if self._client is None:
            raise AnalysisUnavailable(
                "GEMINI_API_KEY missing. Add it to Gemini-Integration-Key.env"
            )

        size = clamp_window(window, self._max_window, self._default_window)
        samples = extract_window(self._store, parse_source_selector(source), size)
        telemetry_text = build_telemetry_summary(samples, self._slouch_deg)

        raw = await self._client.generate(
            build_system_prompt(self._slouch_deg),
            build_user_prompt(telemetry_text),
        )

        try:
            parsed = orjson.loads(raw)
        except orjson.JSONDecodeError:
            parsed = None
            logger.warning("[ANALYSIS] LLM reply is not JSON, using fallback chars=%d", len(raw))

        report: Dict[str, Any] = {
            "ok": True,
            "window": size,
            "source": source,
            "gemini_used": True,
            "result": parsed if parsed is not None else build_fallback_report(samples, self._slouch_deg),
        }
        if parsed is None:
            report["raw_if_unparsed"] = raw
        logger.info(
            "[ANALYSIS] window=%d source=%s samples=%d parsed=%s",
            size, source, len(samples), parsed is not None,
        )
        return report
