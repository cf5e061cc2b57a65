from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class ConfigurationError(ValueError):
    """Configuración inválida detectada al arrancar el proceso (fatal)."""


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _default_env_file() -> str:
    # La clave de Gemini vive en un .env aparte del resto de la configuración.
    return str(_repo_root() / "Gemini-Integration-Key.env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(float(raw))
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    port: int

    telemetry1_path: Path
    telemetry2_path: Path

    max_buffer: int

    analysis_default_window: int
    analysis_max_window: int
    slouch_deg: float

    gemini_api_key: Optional[str]
    gemini_model: str
    gemini_timeout_seconds: float

    log_drain_timeout_seconds: float
    ws_outbound_queue_size: int
    log_level: str = "INFO"

    def log_path_for(self, source_id: int) -> Path:
        """Ruta NDJSON de una fuente.

        Las fuentes 1 y 2 tienen ruta configurable; cualquier otra fuente
        escribe ``telemetry{N}.ndjson`` junto al fichero de la fuente 1.
        """
        if source_id == 1:
            return self.telemetry1_path
        if source_id == 2:
            return self.telemetry2_path
        return self.telemetry1_path.with_name(f"telemetry{int(source_id)}.ndjson")

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("RELAY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    root = _repo_root()
    telemetry1_path = Path(os.getenv("TELEMETRY1_PATH") or root / "telemetry.ndjson")
    telemetry2_path = Path(os.getenv("TELEMETRY2_PATH") or root / "telemetry2.ndjson")

    max_buffer = _env_int("MAX_BUFFER", 2000)
    if max_buffer <= 0:
        raise ConfigurationError(f"MAX_BUFFER must be positive, got {max_buffer}")

    ws_queue = _env_int("WS_OUTBOUND_QUEUE_SIZE", 256)
    if ws_queue <= 0:
        raise ConfigurationError(f"WS_OUTBOUND_QUEUE_SIZE must be positive, got {ws_queue}")

    return Settings(
        port=_env_int("PORT", 8080),
        telemetry1_path=telemetry1_path,
        telemetry2_path=telemetry2_path,
        max_buffer=max_buffer,
        analysis_default_window=_env_int("ANALYSIS_WINDOW", 300),
        analysis_max_window=_env_int("ANALYSIS_MAX_WINDOW", 1000),
        slouch_deg=_env_float("SLOUCH_DEG", 15.0),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
        gemini_timeout_seconds=_env_float("GEMINI_TIMEOUT_SEC", 20.0),
        log_drain_timeout_seconds=_env_float("LOG_DRAIN_TIMEOUT_SEC", 5.0),
        ws_outbound_queue_size=ws_queue,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
