"""Tests del appender NDJSON por fuente."""

import asyncio
import json
import threading

import pytest
from prometheus_client import REGISTRY

from common.config import ConfigurationError
from relay_api.core.domain.record import Event, Sample
from relay_api.infrastructure.persistence.ndjson_appender import NdjsonLogAppender


def _lines(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


@pytest.fixture
def paths(tmp_path):
    return {1: tmp_path / "telemetry.ndjson", 2: tmp_path / "telemetry2.ndjson"}


@pytest.fixture
def path_for(paths, tmp_path):
    return lambda source_id: paths.get(source_id, tmp_path / f"telemetry{source_id}.ndjson")


class TestAppend:

    @pytest.mark.asyncio
    async def test_lines_in_append_order_per_source(self, path_for, paths):
        appender = NdjsonLogAppender(path_for)
        await appender.start([1, 2])

        for i in range(50):
            appender.append(1, Sample(source=1, pitch=i, ts=i))
        appender.append(2, Sample(source=2, pitch=99, ts=1))
        await appender.close()

        assert [line["pitch"] for line in _lines(paths[1])] == list(range(50))
        assert _lines(paths[2]) == [{"kind": "sample", "pitch": 99, "ts": 1, "source": 2}]
        assert appender.lines_written == 51

    @pytest.mark.asyncio
    async def test_event_line_format(self, path_for, paths):
        appender = NdjsonLogAppender(path_for)
        await appender.start([2])
        appender.append(2, Event(source=2, event="button_click", ts=123456))
        await appender.close()

        assert paths[2].read_text() == '{"kind":"event","event":"button_click","ts":123456,"source":2}\n'

    @pytest.mark.asyncio
    async def test_append_is_append_only(self, path_for, paths):
        paths[1].write_text('{"kind":"sample","pitch":0,"ts":0,"source":1}\n')
        appender = NdjsonLogAppender(path_for)
        await appender.start([1])
        appender.append(1, Sample(source=1, pitch=1, ts=1))
        await appender.close()

        assert [line["pitch"] for line in _lines(paths[1])] == [0, 1]

    @pytest.mark.asyncio
    async def test_lazy_source_file(self, path_for, tmp_path):
        appender = NdjsonLogAppender(path_for)
        appender.append(3, Sample(source=3, pitch=1, ts=1))
        await appender.flush()

        assert _lines(tmp_path / "telemetry3.ndjson")[0]["source"] == 3
        await appender.close()


# =============================================================================
# FALLOS DE PERSISTENCIA
# =============================================================================

class TestFailures:

    @pytest.mark.asyncio
    async def test_unopenable_path_at_start_is_fatal(self, tmp_path):
        # Un directorio no se puede abrir como fichero
        appender = NdjsonLogAppender(lambda source_id: tmp_path)

        with pytest.raises(ConfigurationError):
            await appender.start([1])
        await appender.close()

    @pytest.mark.asyncio
    async def test_write_failure_is_logged_not_raised(self, tmp_path, caplog):
        appender = NdjsonLogAppender(lambda source_id: tmp_path)

        appender.append(1, Sample(source=1, pitch=1, ts=1))
        await appender.flush()

        assert appender.lines_failed == 1
        assert appender.lines_written == 0
        assert "Append failed" in caplog.text
        await appender.close()

    @pytest.mark.asyncio
    async def test_failure_on_one_source_keeps_others(self, tmp_path):
        good = tmp_path / "ok.ndjson"
        appender = NdjsonLogAppender(lambda source_id: good if source_id == 1 else tmp_path)

        appender.append(2, Sample(source=2, pitch=1, ts=1))
        appender.append(1, Sample(source=1, pitch=2, ts=2))
        await appender.close()

        assert _lines(good) == [{"kind": "sample", "pitch": 2, "ts": 2, "source": 1}]
        assert appender.lines_failed == 1


# =============================================================================
# SHUTDOWN
# =============================================================================

class TestClose:

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, path_for):
        appender = NdjsonLogAppender(path_for)
        await appender.start([1])
        await appender.close()
        await appender.close()

    @pytest.mark.asyncio
    async def test_append_after_close_is_dropped(self, path_for, paths):
        appender = NdjsonLogAppender(path_for)
        await appender.start([1])
        await appender.close()

        appender.append(1, Sample(source=1, pitch=1, ts=1))

        assert appender.lines_failed == 1
        assert paths[1].read_text() == ""

    @pytest.mark.asyncio
    async def test_close_releases_file_handles(self, path_for):
        appender = NdjsonLogAppender(path_for)
        await appender.start([1, 2])
        await appender.close()

        assert all(log.handle is None for log in appender._logs.values())
        assert appender.pending == 0

    @pytest.mark.asyncio
    async def test_drain_is_bounded_when_disk_hangs(self, path_for, monkeypatch, caplog):
        """Un disco colgado no bloquea el shutdown más allá del periodo de gracia."""
        entered = threading.Event()
        release = threading.Event()

        def hanging_write(self, log, data):
            entered.set()
            release.wait(5)

        pending_before = REGISTRY.get_sample_value("relay_log_pending_lines")
        appender = NdjsonLogAppender(path_for)
        await appender.start([1])
        monkeypatch.setattr(NdjsonLogAppender, "_write_batch", hanging_write)

        appender.append(1, Sample(source=1, pitch=1, ts=1))
        assert await asyncio.to_thread(entered.wait, 2)
        appender.append(1, Sample(source=1, pitch=2, ts=2))
        appender.append(1, Sample(source=1, pitch=3, ts=3))

        try:
            await asyncio.wait_for(appender.close(timeout=0.05), 2)
        finally:
            release.set()

        assert "Drain timeout" in caplog.text
        assert all(log.handle is None for log in appender._logs.values())
        assert appender.pending == 0
        assert appender.lines_written == 0
        assert appender.lines_failed == 3
        assert REGISTRY.get_sample_value("relay_log_pending_lines") == pending_before
