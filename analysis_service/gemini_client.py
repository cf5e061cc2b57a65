"""Cliente mínimo de Gemini (REST ``generateContent``) sobre httpx.

La llamada lleva un único prompt: el mensaje de sistema y el de
usuario se concatenan con separadores explícitos.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiError(RuntimeError):
    """Respuesta inesperada del servicio de generación."""


def combine_prompts(system_prompt: str, user_prompt: str) -> str:
    return "\n".join([
        "SYSTEM INSTRUCTIONS:",
        system_prompt,
        "",
        "USER REQUEST:",
        user_prompt,
    ])


def extract_text(payload: Dict[str, Any]) -> str:
    """Concatena las ``parts`` de texto del primer candidato."""
    candidates = payload.get("candidates") or []
    if not candidates:
        raise GeminiError("response has no candidates")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(str(p.get("text", "")) for p in parts).strip()


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        timeout_seconds: float = 20.0,
        base_url: str = DEFAULT_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout_seconds
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        body = {"contents": [{"parts": [{"text": combine_prompts(system_prompt, user_prompt)}]}]}

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(url, json=body, headers={"x-goog-api-key": self._api_key})
            resp.raise_for_status()
            text = extract_text(resp.json())

        logger.debug("[ANALYSIS] Gemini model=%s chars=%d", self._model, len(text))
        return text
