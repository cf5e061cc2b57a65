"""Coordinador de ingesta: normaliza y aplica cada registro entrante.

Orden estricto por registro aceptado:
1. Store (latest + historial)
2. Encolar línea NDJSON (no se espera)
3. Publish al hub

Así, cualquier visor que recibe un registro por broadcast puede consultar
el store y verlo ya como ``latest``.

``ingest`` es síncrono y se ejecuta en el event loop: entre los pasos no
hay ``await``, por lo que las ingestas de una misma fuente se aplican en
orden de llegada y sin intercalarse.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import orjson

from ..broadcast.hub import BroadcastHub, encode_message
from ..core.domain.record import Record
from ..core.errors import RecordValidationError
from ..core.monitoring.stats import Stats
from ..core.validation.normalizer import normalize_record
from ..metrics import INGEST_LATENCY, RECORDS_ACCEPTED, RECORDS_REJECTED
from ..state.source_store import SourceStore

logger = logging.getLogger(__name__)


class RecordLog(Protocol):
    def append(self, source_id: int, record: Record) -> None:
        ...


@dataclass(frozen=True)
class IngestOutcome:
    """Resultado de una ingesta (ack o rechazo)."""
    ok: bool
    status_code: int = 200
    record: Optional[Record] = None
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True}
        return {"ok": False, "error": self.error}


class IngestCoordinator:
    """Único dueño del mapeo fuente → estado durante la vida del proceso."""

    def __init__(
        self,
        store: SourceStore,
        log: RecordLog,
        hub: BroadcastHub,
        stats: Optional[Stats] = None,
    ) -> None:
        self._store = store
        self._log = log
        self._hub = hub
        self._stats = stats or Stats()
        self._arrival = itertools.count(1)

    @property
    def stats(self) -> Stats:
        return self._stats

    def ingest(self, raw: Any, source_id: int) -> IngestOutcome:
        """Normaliza ``raw`` y lo aplica a store, log y hub.

        Un rechazo no tiene efectos: ni store, ni log, ni broadcast.
        """
        started = time.perf_counter()
        try:
            record = normalize_record(raw, source_id)
            # Se serializa antes de tocar el store: un fallo aquí no deja rastro
            message = encode_message(record)
        except RecordValidationError as e:
            return self._reject(source_id, e.reason, e.status_code)
        except orjson.JSONEncodeError as e:
            return self._reject(source_id, f"record is not serializable: {e}", 400)

        record = dataclasses.replace(record, arrival_seq=next(self._arrival))

        self._store.apply(source_id, record)
        self._log.append(source_id, record)
        delivered = self._hub.publish(record, message)

        self._stats.record_accepted(source_id, time.time())
        RECORDS_ACCEPTED.labels(source=str(source_id), kind=record.kind.value).inc()
        INGEST_LATENCY.observe(time.perf_counter() - started)
        logger.debug(
            "[INGEST] Accepted source=%s kind=%s ts=%s subscribers=%d",
            source_id, record.kind.value, record.ts, delivered,
        )
        return IngestOutcome(ok=True, record=record)

    def _reject(self, source_id: int, reason: str, status_code: int) -> IngestOutcome:
        self._stats.record_rejected()
        RECORDS_REJECTED.labels(source=str(source_id)).inc()
        logger.info("[INGEST] Rejected source=%s reason=%s", source_id, reason)
        return IngestOutcome(ok=False, status_code=status_code, error=reason)
