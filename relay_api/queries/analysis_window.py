"""Ventanas de historial para el análisis de postura.

Funciones puras sobre un snapshot del store; no mutan estado.
"""

from __future__ import annotations

import math
from typing import Any, List, Sequence, Tuple

from ..core.domain.record import RecordKind, Sample
from ..core.validation.normalizer import coerce_number
from ..state.source_store import SourceStore

MIN_WINDOW = 20
BOTH_SOURCES: Tuple[int, ...] = (1, 2)


def clamp_window(requested: Any, max_window: int, default: int) -> int:
    """Ventana pedida → entero en ``[MIN_WINDOW, max_window]``.

    Valores no numéricos usan ``default``; los decimales se truncan hacia abajo.
    """
    value = coerce_number(requested)
    if value is None:
        value = default
    return max(MIN_WINDOW, min(int(max_window), math.floor(value)))


def parse_source_selector(value: Any) -> Tuple[int, ...]:
    """``1``/``"1"`` → fuente 1, ``2``/``"2"`` → fuente 2, cualquier otra cosa → ambas."""
    if isinstance(value, bool):
        return BOTH_SOURCES
    if value in (1, "1"):
        return (1,)
    if value in (2, "2"):
        return (2,)
    return BOTH_SOURCES


def extract_window(
    store: SourceStore,
    sources: Sequence[int],
    size: int,
) -> List[Sample]:
    """Últimos ``size`` registros de cada fuente, filtrados a samples.

    Con varias fuentes se mezclan por ``ts`` ascendente con sort estable;
    los empates se resuelven por orden de llegada. No se reordena nada más.
    """
    selected: List[Sample] = []
    for source_id in sources:
        history = store.get_history(source_id)
        recent = history[max(0, len(history) - size):]
        selected.extend(r for r in recent if r.kind is RecordKind.SAMPLE)

    if len(sources) > 1:
        selected.sort(key=lambda s: (s.ts, s.arrival_seq))
    return selected

