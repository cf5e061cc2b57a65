from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from common.config import Settings
from relay_api.broadcast.hub import BroadcastHub
from relay_api.core.domain.record import Record
from relay_api.core.errors import TransportError
from relay_api.ingest.coordinator import IngestCoordinator
from relay_api.state.source_store import SourceStore


class FakeSubscriber:
    """Suscriptor en memoria; puede simular un transporte roto."""

    def __init__(self, fail_after: Optional[int] = None, on_send: Optional[Callable[[str], None]] = None):
        self.messages: List[str] = []
        self.closed = False
        self._fail_after = fail_after
        self._on_send = on_send

    @property
    def is_open(self) -> bool:
        return not self.closed

    def send(self, message: str) -> None:
        if self.closed:
            raise TransportError("closed")
        if self._fail_after is not None and len(self.messages) >= self._fail_after:
            raise TransportError("peer went away")
        if self._on_send is not None:
            self._on_send(message)
        self.messages.append(message)

    def close(self) -> None:
        self.closed = True


class FakeRecordLog:
    """Log NDJSON en memoria (sin event loop)."""

    def __init__(self) -> None:
        self.appended: List[Tuple[int, Record]] = []

    def append(self, source_id: int, record: Record) -> None:
        self.appended.append((source_id, record))


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = dict(
            port=8080,
            telemetry1_path=tmp_path / "telemetry.ndjson",
            telemetry2_path=tmp_path / "telemetry2.ndjson",
            max_buffer=2000,
            analysis_default_window=300,
            analysis_max_window=1000,
            slouch_deg=15.0,
            gemini_api_key=None,
            gemini_model="gemini-1.5-flash",
            gemini_timeout_seconds=5.0,
            log_drain_timeout_seconds=2.0,
            ws_outbound_queue_size=64,
        )
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def store() -> SourceStore:
    return SourceStore(max_buffer=2000)


@pytest.fixture
def record_log() -> FakeRecordLog:
    return FakeRecordLog()


@pytest.fixture
def hub(store: SourceStore) -> BroadcastHub:
    return BroadcastHub(store)


@pytest.fixture
def coordinator(store: SourceStore, record_log: FakeRecordLog, hub: BroadcastHub) -> IngestCoordinator:
    return IngestCoordinator(store, record_log, hub)
