"""Taxonomía de errores del relay.

- RecordValidationError: causado por el cliente; se rechaza sin efectos.
- PersistenceError: fallo de escritura NDJSON; se loguea, nunca llega al productor.
- TransportError: fallo de envío a un suscriptor; solo se elimina ese suscriptor.
- ConfigurationError: fatal al arrancar (ver common.config).
"""

from __future__ import annotations

from common.config import ConfigurationError


class RelayError(Exception):
    """Base de los errores del relay."""


class RecordValidationError(RelayError):
    """El registro entrante no tiene forma de Sample ni de Event."""

    status_code = 400

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PersistenceError(RelayError):
    """No se pudo anexar una línea al log NDJSON de una fuente."""

    def __init__(self, source_id: int, message: str):
        super().__init__(f"source={source_id}: {message}")
        self.source_id = source_id


class TransportError(RelayError):
    """El transporte de un suscriptor está cerrado o no acepta más mensajes."""


__all__ = [
    "RelayError",
    "RecordValidationError",
    "PersistenceError",
    "TransportError",
    "ConfigurationError",
]
