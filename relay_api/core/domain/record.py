"""Modelo de dominio para registros de telemetría de postura."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import orjson

Scalar = Union[int, float, str, bool]
Number = Union[int, float]

# Campos numéricos opcionales de un Sample, en el orden en que se serializan.
SAMPLE_OPTIONAL_FIELDS = (
    "ax",
    "ay",
    "az",
    "pitch_smooth",
    "roll",
    "a_mag",
    "dpitch",
    "baseline_pitch",
    "button",
    "button_click",
)

RESERVED_EVENT_KEYS = frozenset({"kind", "source", "ts", "event"})


class RecordKind(str, Enum):
    """Tag del registro (tagged union)."""
    SAMPLE = "sample"
    EVENT = "event"


@dataclass(frozen=True)
class Sample:
    """Medida de postura de una fuente.

    Los campos opcionales a ``None`` significan "no medido" y se omiten al
    serializar; nunca se sustituyen por cero.
    """
    source: int
    pitch: Number
    ts: Number
    ax: Optional[Number] = None
    ay: Optional[Number] = None
    az: Optional[Number] = None
    pitch_smooth: Optional[Number] = None
    roll: Optional[Number] = None
    a_mag: Optional[Number] = None
    dpitch: Optional[Number] = None
    baseline_pitch: Optional[Number] = None
    button: Optional[Number] = None
    button_click: Optional[Number] = None

    # Orden de llegada asignado por el coordinador (no se serializa)
    arrival_seq: int = field(default=0, compare=False, repr=False)

    kind = RecordKind.SAMPLE

    def to_dict(self) -> Dict[str, Any]:
        """Forma canónica para NDJSON y websocket."""
        out: Dict[str, Any] = {"kind": self.kind.value}
        for name in SAMPLE_OPTIONAL_FIELDS[:3]:
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        out["pitch"] = self.pitch
        for name in SAMPLE_OPTIONAL_FIELDS[3:]:
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        out["ts"] = self.ts
        out["source"] = self.source
        return out


@dataclass(frozen=True)
class Event:
    """Ocurrencia discreta (p.ej. calibración) con campos escalares libres."""
    source: int
    event: str
    ts: Number
    extras: Mapping[str, Scalar] = field(default_factory=lambda: MappingProxyType({}))

    arrival_seq: int = field(default=0, compare=False, repr=False)

    kind = RecordKind.EVENT

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value, "event": self.event}
        for key, value in self.extras.items():
            if key not in RESERVED_EVENT_KEYS:
                out[key] = value
        out["ts"] = self.ts
        out["source"] = self.source
        return out


Record = Union[Sample, Event]


def serialize_record(record: Record) -> bytes:
    """Un registro → una línea JSON (sin salto de línea)."""
    return orjson.dumps(record.to_dict())
