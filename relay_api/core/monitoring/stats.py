"""Estadísticas de procesamiento del relay."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Counter as CounterType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Stats:
    """Contadores de ingesta desde el arranque del proceso."""

    received: int = 0
    accepted: int = 0
    rejected: int = 0
    last_record_at: float = 0
    accepted_by_source: CounterType[int] = field(default_factory=Counter)
    started_at: datetime = field(default_factory=_utcnow)

    def __str__(self) -> str:
        return f"Stats: received={self.received} accepted={self.accepted} rejected={self.rejected}"

    def record_accepted(self, source_id: int, at: float) -> None:
        self.received += 1
        self.accepted += 1
        self.accepted_by_source[source_id] += 1
        self.last_record_at = at

    def record_rejected(self) -> None:
        self.received += 1
        self.rejected += 1

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        return {
            "received": self.received,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "accepted_by_source": {str(k): v for k, v in sorted(self.accepted_by_source.items())},
            "last_record_at": self.last_record_at,
            "started_at": self.started_at.isoformat(),
            "acceptance_rate": self._acceptance_rate(),
        }

    def _acceptance_rate(self) -> float:
        if self.received == 0:
            return 1.0
        return self.accepted / self.received
