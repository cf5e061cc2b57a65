"""Tests de la extracción de ventanas de análisis."""

import pytest

from relay_api.core.domain.record import Event, Sample
from relay_api.queries.analysis_window import (
    MIN_WINDOW,
    clamp_window,
    extract_window,
    parse_source_selector,
)
from relay_api.state.source_store import SourceStore


def _fill(coordinator, source_id, items):
    for item in items:
        assert coordinator.ingest(item, source_id).ok


class TestClampWindow:

    @pytest.mark.parametrize("requested, expected", [
        (5, MIN_WINDOW),
        (20, 20),
        (300, 300),
        (99.9, 99),
        ("150", 150),
        (5000, 1000),
        (None, 300),
        ("abc", 300),
        (True, 300),
    ])
    def test_clamp(self, requested, expected):
        assert clamp_window(requested, max_window=1000, default=300) == expected


class TestSourceSelector:

    @pytest.mark.parametrize("value, expected", [
        (1, (1,)),
        ("1", (1,)),
        (2, (2,)),
        ("2", (2,)),
        ("both", (1, 2)),
        (None, (1, 2)),
        (3, (1, 2)),
        (True, (1, 2)),
    ])
    def test_selector(self, value, expected):
        assert parse_source_selector(value) == expected


class TestExtractWindow:

    def test_single_source_last_n_samples(self, coordinator, store):
        _fill(coordinator, 1, [{"pitch": i, "ts": i} for i in range(50)])

        result = extract_window(store, (1,), 20)

        assert [s.pitch for s in result] == list(range(30, 50))

    def test_events_are_filtered_out(self, coordinator, store):
        _fill(coordinator, 1, [
            {"pitch": 1, "ts": 1},
            {"event": "calibrate", "ts": 2},
            {"pitch": 2, "ts": 3},
        ])

        result = extract_window(store, (1,), 20)

        assert all(isinstance(s, Sample) for s in result)
        assert [s.pitch for s in result] == [1, 2]

    def test_window_counts_records_before_filtering(self, coordinator, store):
        """Los últimos N registros se cortan antes de descartar eventos."""
        _fill(coordinator, 1, [{"pitch": i, "ts": i} for i in range(20)])
        _fill(coordinator, 1, [{"event": "tick", "ts": 100 + i} for i in range(5)])

        assert len(extract_window(store, (1,), 20)) == 15

    def test_single_source_keeps_arrival_order(self, coordinator, store):
        _fill(coordinator, 1, [{"pitch": 1, "ts": 30}, {"pitch": 2, "ts": 10}])

        assert [s.pitch for s in extract_window(store, (1,), 20)] == [1, 2]

    def test_both_sources_merged_by_ts(self, coordinator, store):
        _fill(coordinator, 1, [{"pitch": 10, "ts": 1}, {"pitch": 11, "ts": 3}])
        _fill(coordinator, 2, [{"pitch": 20, "ts": 2}, {"pitch": 21, "ts": 4}])

        result = extract_window(store, (1, 2), 20)

        assert [s.ts for s in result] == [1, 2, 3, 4]
        assert [s.source for s in result] == [1, 2, 1, 2]

    def test_equal_ts_tie_broken_by_arrival(self, coordinator, store):
        _fill(coordinator, 2, [{"pitch": 20, "ts": 5}])
        _fill(coordinator, 1, [{"pitch": 10, "ts": 5}])

        assert [s.source for s in extract_window(store, (1, 2), 20)] == [2, 1]

    def test_unknown_source_is_empty(self, store):
        assert extract_window(store, (1, 2), 20) == []

    def test_does_not_mutate_store(self, coordinator, store):
        _fill(coordinator, 1, [{"pitch": i, "ts": 10 - i} for i in range(5)])
        before = store.get_history(1)

        extract_window(store, (1, 2), 20)

        assert store.get_history(1) == before


def test_event_record_type_is_excluded():
    store = SourceStore()
    store.apply(1, Event(source=1, event="x", ts=1))
    assert extract_window(store, (1,), 20) == []
