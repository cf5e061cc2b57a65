"""Tests del store por fuente (latest + historial FIFO acotado)."""

import pytest

from relay_api.core.domain.record import Event, Sample
from relay_api.state.source_store import SourceStore


def _sample(i: int, source: int = 1) -> Sample:
    return Sample(source=source, pitch=float(i), ts=1000 + i)


class TestLatest:

    def test_unknown_source(self, store):
        assert store.get_latest(1) is None
        assert store.get_history(1) == []
        assert store.source_ids() == []

    def test_latest_is_last_applied(self, store):
        for i in range(5):
            store.apply(1, _sample(i))

        assert store.get_latest(1) == _sample(4)

    def test_events_also_replace_latest(self, store):
        store.apply(1, _sample(1))
        event = Event(source=1, event="calibrate", ts=2000)
        store.apply(1, event)

        assert store.get_latest(1) is event

    def test_sources_are_independent(self, store):
        store.apply(1, _sample(1, source=1))
        store.apply(2, _sample(7, source=2))
        store.apply(1, _sample(2, source=1))

        assert store.get_latest(2) == _sample(7, source=2)
        assert store.get_latest(1) == _sample(2, source=1)

    def test_latest_snapshot_ascending(self, store):
        store.apply(2, _sample(2, source=2))
        store.apply(1, _sample(1, source=1))

        assert [r.source for r in store.latest_snapshot()] == [1, 2]


class TestBoundedHistory:

    def test_history_in_acceptance_order(self, store):
        for i in range(3):
            store.apply(1, _sample(i))

        assert [r.pitch for r in store.get_history(1)] == [0.0, 1.0, 2.0]

    def test_fifo_eviction(self):
        """MAX_BUFFER + k registros → quedan los últimos MAX_BUFFER."""
        store = SourceStore(max_buffer=10)
        for i in range(13):
            store.apply(1, _sample(i))

        history = store.get_history(1)
        assert len(history) == 10
        assert [r.pitch for r in history] == [float(i) for i in range(3, 13)]

    def test_default_buffer_2001_samples(self):
        """Con MAX_BUFFER=2000, tras 2001 samples el más antiguo es el 2º."""
        store = SourceStore()
        for i in range(2001):
            store.apply(1, _sample(i))

        history = store.get_history(1)
        assert len(history) == 2000
        assert history[0] == _sample(1)
        assert history[-1] == _sample(2000)

    def test_history_is_a_snapshot(self, store):
        store.apply(1, _sample(0))
        snapshot = store.get_history(1)
        store.apply(1, _sample(1))

        assert len(snapshot) == 1
        assert len(store.get_history(1)) == 2

    def test_invalid_buffer(self):
        with pytest.raises(ValueError):
            SourceStore(max_buffer=0)
