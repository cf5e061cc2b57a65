"""Normalizador de registros entrantes.

Convierte el JSON crudo de un bridge en un ``Sample`` o un ``Event``.

REGLAS:
- ``event`` string no vacío → Event; los demás campos escalares pasan tal cual.
- Si no, ``pitch`` debe poder convertirse a número finito → Sample.
- Campos numéricos opcionales no convertibles se omiten (nunca se ponen a 0).
- ``ts`` ausente o no numérico → hora actual del proceso en ms.
"""

from __future__ import annotations

import math
import time
from types import MappingProxyType
from typing import Any, Dict, Optional, Union

from ..domain.record import (
    RESERVED_EVENT_KEYS,
    SAMPLE_OPTIONAL_FIELDS,
    Event,
    Record,
    Sample,
    Scalar,
)
from ..errors import RecordValidationError

PITCH_REQUIRED = "pitch must be a number"
BODY_NOT_OBJECT = "body must be a JSON object"

# Rango de enteros que orjson puede serializar (i64 / u64)
MIN_INT = -(2 ** 63)
MAX_INT = 2 ** 64 - 1


def now_ms() -> int:
    return int(time.time() * 1000)


def _int_in_range(value: int) -> bool:
    return MIN_INT <= value <= MAX_INT


def coerce_number(value: Any) -> Optional[Union[int, float]]:
    """Convierte a número finito o devuelve ``None``.

    Acepta int/float y strings numéricos ("12.5", " 10 "). Booleanos,
    NaN, infinitos y strings vacíos no son números. Tampoco los enteros
    fuera del rango de 64 bits.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if _int_in_range(value) else None
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        # float() acepta "1_000", JSON no
        if not text or "_" in text:
            return None
        try:
            number = int(text)
        except ValueError:
            pass
        else:
            return number if _int_in_range(number) else None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _event_extras(raw: Dict[str, Any]) -> Dict[str, Scalar]:
    extras: Dict[str, Scalar] = {}
    for key, value in raw.items():
        if key in RESERVED_EVENT_KEYS:
            continue
        if isinstance(value, bool):
            extras[key] = value
        elif isinstance(value, int):
            if _int_in_range(value):
                extras[key] = value
        elif isinstance(value, str):
            extras[key] = value
        elif isinstance(value, float) and math.isfinite(value):
            extras[key] = value
    return extras


def normalize_record(raw: Any, source_id: int) -> Record:
    """Valida y normaliza ``raw`` para la fuente ``source_id``.

    Raises:
        RecordValidationError: si no hay ``event`` ni ``pitch`` numérico.
    """
    if not isinstance(raw, dict):
        raise RecordValidationError(BODY_NOT_OBJECT)

    ts = coerce_number(raw.get("ts"))
    if ts is None:
        ts = now_ms()

    event = raw.get("event")
    if isinstance(event, str) and event:
        return Event(
            source=source_id,
            event=event,
            ts=ts,
            extras=MappingProxyType(_event_extras(raw)),
        )

    pitch = coerce_number(raw.get("pitch"))
    if pitch is None:
        raise RecordValidationError(PITCH_REQUIRED)

    optional = {name: coerce_number(raw.get(name)) for name in SAMPLE_OPTIONAL_FIELDS}
    return Sample(source=source_id, pitch=pitch, ts=ts, **optional)
