"""Domain layer - Registros de telemetría."""

from .record import Event, Record, RecordKind, Sample, serialize_record

__all__ = ["Event", "Record", "RecordKind", "Sample", "serialize_record"]
