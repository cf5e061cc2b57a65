"""Appender NDJSON por fuente.

Cada registro aceptado se escribe como una línea JSON en el fichero de su
fuente. La escritura es fire-and-forget respecto a la ingesta:

- ``append()`` solo serializa y encola (no bloquea el event loop).
- Un writer en background por fuente vacía su cola en orden, en un hilo
  (``asyncio.to_thread``), así que el orden por fuente se conserva.
- Un fallo de disco se loguea y se cuenta; nunca llega al productor.
- ``close()`` drena con un periodo de gracia acotado y cierra los ficheros.

Sin fsync, sin rotación, sin compactación: el log solo crece.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterable, List, Optional

from ...core.domain.record import Record, serialize_record
from ...core.errors import ConfigurationError, PersistenceError
from ...metrics import LOG_APPEND_FAILURES, LOG_PENDING_LINES

logger = logging.getLogger(__name__)

DEFAULT_DRAIN_TIMEOUT = 5.0


@dataclass
class _SourceLog:
    source_id: int
    path: Path
    queue: "asyncio.Queue[bytes]" = field(default_factory=asyncio.Queue)
    task: Optional[asyncio.Task] = None
    handle: Optional[BinaryIO] = None


class NdjsonLogAppender:
    """Log append-only por fuente con una cola de escritura por fichero.

    Uso:
        appender = NdjsonLogAppender(settings.log_path_for)
        await appender.start([1, 2])
        appender.append(1, record)
        ...
        await appender.close()
    """

    def __init__(
        self,
        path_for: Callable[[int], Path],
        drain_timeout_seconds: float = DEFAULT_DRAIN_TIMEOUT,
    ):
        self._path_for = path_for
        self._drain_timeout = float(drain_timeout_seconds)
        self._logs: Dict[int, _SourceLog] = {}
        self._closed = False

        self.lines_written = 0
        self.lines_failed = 0

    async def start(self, source_ids: Iterable[int] = ()) -> None:
        """Abre los ficheros de las fuentes conocidas.

        Raises:
            ConfigurationError: si alguna ruta no se puede abrir para append.
        """
        for source_id in source_ids:
            log = self._get_log(source_id)
            try:
                await asyncio.to_thread(self._open, log)
            except OSError as e:
                raise ConfigurationError(
                    f"cannot open telemetry log {log.path}: {e}"
                ) from e
            logger.info("[NDJSON] Logging source=%s to %s", source_id, log.path)

    def append(self, source_id: int, record: Record) -> None:
        """Encola el registro; retorna inmediatamente."""
        if self._closed:
            self.lines_failed += 1
            LOG_APPEND_FAILURES.labels(source=str(source_id)).inc()
            logger.warning("[NDJSON] Appender closed, line dropped source=%s", source_id)
            return

        line = serialize_record(record) + b"\n"
        self._get_log(source_id).queue.put_nowait(line)
        LOG_PENDING_LINES.inc()

    @property
    def pending(self) -> int:
        return sum(log.queue.qsize() for log in self._logs.values())

    def path_of(self, source_id: int) -> Path:
        return Path(self._path_for(source_id))

    async def flush(self) -> None:
        """Espera a que todas las líneas encoladas se hayan procesado."""
        await asyncio.gather(*(log.queue.join() for log in self._logs.values()))

    async def close(self, timeout: Optional[float] = None) -> None:
        """Drena lo pendiente (máx. ``timeout`` s) y libera los ficheros."""
        if self._closed:
            return
        self._closed = True
        timeout = self._drain_timeout if timeout is None else float(timeout)

        try:
            await asyncio.wait_for(self.flush(), timeout)
        except asyncio.TimeoutError:
            lost = self._discard_pending()
            logger.warning(
                "[NDJSON] Drain timeout after %.1fs, pending=%d lines lost",
                timeout, lost,
            )
        finally:
            tasks: List[asyncio.Task] = [log.task for log in self._logs.values() if log.task]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            for log in self._logs.values():
                if log.handle is not None:
                    log.handle.close()
                    log.handle = None
            logger.info(
                "[NDJSON] Closed written=%d failed=%d",
                self.lines_written, self.lines_failed,
            )

    def _discard_pending(self) -> int:
        """Vacía las colas y cuenta sus líneas como fallidas."""
        lost = 0
        for log in self._logs.values():
            dropped = 0
            while not log.queue.empty():
                log.queue.get_nowait()
                log.queue.task_done()
                dropped += 1
            if dropped:
                LOG_APPEND_FAILURES.labels(source=str(log.source_id)).inc(dropped)
            lost += dropped
        self.lines_failed += lost
        LOG_PENDING_LINES.dec(lost)
        return lost

    def _get_log(self, source_id: int) -> _SourceLog:
        log = self._logs.get(source_id)
        if log is None:
            log = _SourceLog(source_id=source_id, path=self.path_of(source_id))
            self._logs[source_id] = log
        if log.task is None:
            log.task = asyncio.get_running_loop().create_task(
                self._writer_loop(log), name=f"ndjson-writer-{source_id}",
            )
        return log

    async def _writer_loop(self, log: _SourceLog) -> None:
        while True:
            batch = [await log.queue.get()]
            while not log.queue.empty():
                batch.append(log.queue.get_nowait())

            try:
                await asyncio.to_thread(self._write_batch, log, b"".join(batch))
                self.lines_written += len(batch)
            except PersistenceError as e:
                self.lines_failed += len(batch)
                LOG_APPEND_FAILURES.labels(source=str(log.source_id)).inc(len(batch))
                logger.error("[NDJSON] Append failed lines=%d: %s", len(batch), e)
            except asyncio.CancelledError:
                # Lote en vuelo al cortar el drain: sin confirmar
                self.lines_failed += len(batch)
                LOG_APPEND_FAILURES.labels(source=str(log.source_id)).inc(len(batch))
                raise
            finally:
                for _ in batch:
                    log.queue.task_done()
                LOG_PENDING_LINES.dec(len(batch))

    @staticmethod
    def _open(log: _SourceLog) -> None:
        if log.handle is not None:
            return
        log.path.parent.mkdir(parents=True, exist_ok=True)
        log.handle = open(log.path, "ab")

    def _write_batch(self, log: _SourceLog, data: bytes) -> None:
        try:
            self._open(log)
            log.handle.write(data)
            log.handle.flush()
        except (OSError, ValueError) as e:
            # ValueError: fichero cerrado durante el shutdown
            raise PersistenceError(log.source_id, str(e)) from e
