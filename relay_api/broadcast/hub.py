"""Hub de broadcast hacia los visores conectados.

- ``subscribe()``: registra el suscriptor y le envía antes el ``latest`` de
  cada fuente conocida (id ascendente) como ráfaga de catch-up.
- ``publish()``: entrega el registro a cada suscriptor abierto; el que falla
  (TransportError) se elimina del set, sin reintentos.
- Sin backpressure: ``Subscriber.send`` nunca bloquea; si el buffer de
  salida de un cliente se llena, es su transporte el que se cierra.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Set

import orjson

from ..core.domain.record import Record
from ..core.errors import TransportError
from ..metrics import SUBSCRIBERS_CONNECTED, SUBSCRIBERS_DROPPED
from ..state.source_store import SourceStore

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """Handle de una conexión viva.

    ``send`` debe ser no bloqueante y lanzar ``TransportError`` si el
    transporte está cerrado o no acepta más mensajes.
    """

    @property
    def is_open(self) -> bool:
        ...

    def send(self, message: str) -> None:
        ...

    def close(self) -> None:
        ...


def encode_message(record: Record) -> str:
    """Mensaje websocket: un objeto JSON autodescriptivo."""
    return orjson.dumps(record.to_dict()).decode()


class BroadcastHub:
    """Set de suscriptores vivos + fan-out de registros."""

    def __init__(self, store: SourceStore) -> None:
        self._store = store
        self._subscribers: Set[Subscriber] = set()
        self.published = 0
        self.dropped = 0

    def subscribe(self, subscriber: Subscriber) -> Subscriber:
        """Envía el catch-up y registra el suscriptor.

        Raises:
            TransportError: si el transporte falla durante el catch-up; en
                ese caso el suscriptor no queda registrado.
        """
        for record in self._store.latest_snapshot():
            subscriber.send(encode_message(record))
        self._subscribers.add(subscriber)
        SUBSCRIBERS_CONNECTED.set(len(self._subscribers))
        logger.info("[HUB] Subscriber connected total=%d", len(self._subscribers))
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        """Idempotente. Devuelve True si el suscriptor estaba registrado."""
        if subscriber not in self._subscribers:
            return False
        self._subscribers.discard(subscriber)
        SUBSCRIBERS_CONNECTED.set(len(self._subscribers))
        logger.info("[HUB] Subscriber disconnected total=%d", len(self._subscribers))
        return True

    def publish(self, record: Record, message: Optional[str] = None) -> int:
        """Fan-out del registro. Devuelve cuántos suscriptores lo recibieron.

        ``message`` permite reutilizar el JSON ya codificado por el productor.
        """
        if not self._subscribers:
            return 0

        if message is None:
            message = encode_message(record)
        delivered = 0
        dead: List[Subscriber] = []
        for subscriber in list(self._subscribers):
            if not subscriber.is_open:
                dead.append(subscriber)
                continue
            try:
                subscriber.send(message)
                delivered += 1
            except TransportError as e:
                logger.warning("[HUB] Dropping subscriber: %s", e)
                dead.append(subscriber)

        for subscriber in dead:
            self._subscribers.discard(subscriber)
            subscriber.close()
        if dead:
            self.dropped += len(dead)
            SUBSCRIBERS_DROPPED.inc(len(dead))
            SUBSCRIBERS_CONNECTED.set(len(self._subscribers))

        self.published += 1
        return delivered

    def close_all(self) -> None:
        """Cierra y olvida todos los suscriptores (shutdown)."""
        for subscriber in list(self._subscribers):
            subscriber.close()
        self._subscribers.clear()
        SUBSCRIBERS_CONNECTED.set(0)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
