from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

from ..core.domain.record import Record

DEFAULT_MAX_BUFFER = 2000


@dataclass
class SourceState:
    """Estado en memoria de una fuente.

    - ``latest``: último registro aceptado (se reemplaza entero).
    - ``history``: ring FIFO acotado a ``max_buffer``; el más antiguo sale primero.
    """

    source_id: int
    max_buffer: int
    latest: Optional[Record] = None
    history: Deque[Record] = field(init=False)

    def __post_init__(self) -> None:
        self.history = deque(maxlen=self.max_buffer)


class SourceStore:
    """Latest + historial acotado por fuente.

    Las fuentes se crean al recibir su primer registro y viven todo el
    proceso. Sin locks: toda mutación ocurre en el event loop, dentro de
    ``IngestCoordinator.ingest``.
    """

    def __init__(self, max_buffer: int = DEFAULT_MAX_BUFFER) -> None:
        if max_buffer <= 0:
            raise ValueError("max_buffer must be positive")
        self._max_buffer = int(max_buffer)
        # source_id -> SourceState
        self._sources: Dict[int, SourceState] = {}

    @property
    def max_buffer(self) -> int:
        return self._max_buffer

    def apply(self, source_id: int, record: Record) -> None:
        """Reemplaza ``latest`` y añade al historial (deque con maxlen → FIFO)."""
        state = self._sources.get(source_id)
        if state is None:
            state = SourceState(source_id=source_id, max_buffer=self._max_buffer)
            self._sources[source_id] = state
        state.latest = record
        state.history.append(record)

    def get_latest(self, source_id: int) -> Optional[Record]:
        state = self._sources.get(source_id)
        return state.latest if state is not None else None

    def get_history(self, source_id: int) -> List[Record]:
        """Snapshot del historial, del más antiguo al más reciente."""
        state = self._sources.get(source_id)
        if state is None:
            return []
        return list(state.history)

    def source_ids(self) -> List[int]:
        """Fuentes conocidas en orden ascendente."""
        return sorted(self._sources)

    def latest_snapshot(self) -> List[Record]:
        """``latest`` de cada fuente conocida, por id ascendente."""
        return [
            self._sources[sid].latest
            for sid in self.source_ids()
            if self._sources[sid].latest is not None
        ]
