"""
Logging infrastructure: confirmation records, correlation ids, formatters.
"""

import asyncio
import json
import logging
from datetime import timedelta

import pytest

from clockwise.logging import (
    ConsoleFormatter,
    JSONFormatter,
    LogContext,
    LogStream,
    confirm_operation,
    get_correlation_id,
    get_logger,
    get_performance_logger,
    setup_logging,
)
from clockwise.time import VirtualClock


@pytest.fixture
def clock_records(caplog):
    caplog.set_level(logging.DEBUG, logger="clockwise")
    return caplog


class TestConfirmOperation:

    def test_logs_start_and_success(self, clock_records):
        logger = get_logger(LogStream.CLOCK)
        with confirm_operation("op", logger, "Starting op", args={"size": 3},
                               exit_args=lambda: [("result", "ok")]) as op:
            op.succeed()

        records = [r for r in clock_records.records if getattr(r, "operation", None) == "op"]
        assert [r.getMessage() for r in records][0] == "[op] Starting op"
        assert records[-1].success is True
        assert records[-1].result == "ok"
        assert records[-1].size == 3
        assert records[0].correlation_id == records[-1].correlation_id
        assert get_performance_logger().get_stats("op")["count"] == 1

    def test_unconfirmed_exit_is_warning(self, clock_records):
        logger = get_logger(LogStream.CLOCK)
        with confirm_operation("op", logger, log_on_start=False):
            pass

        record = clock_records.records[-1]
        assert record.levelno == logging.WARNING
        assert "without confirmation" in record.getMessage()

    def test_failure_is_logged_and_reraised(self, clock_records):
        logger = get_logger(LogStream.CLOCK)
        with pytest.raises(KeyError):
            with confirm_operation("op", logger):
                raise KeyError("missing")

        record = clock_records.records[-1]
        assert record.levelno == logging.ERROR
        assert record.error_type == "KeyError"
        assert get_performance_logger().get_stats("op") is None


class TestLogContext:

    def test_scoped_correlation_id(self):
        assert get_correlation_id() is None
        with LogContext("abc") as cid:
            assert cid == "abc"
            assert get_correlation_id() == "abc"
            with LogContext() as inner:
                assert inner != "abc"
            assert get_correlation_id() == "abc"
        assert get_correlation_id() is None


class TestAdvanceLogging:

    def test_advance_logs_start_and_landing(self, clock_records, t0):
        clock = VirtualClock(t0)
        clock.schedule(lambda c: None, at=t0 + timedelta(seconds=1))
        target = t0 + timedelta(seconds=5)

        asyncio.run(clock.advance_to(target))

        advance = [r for r in clock_records.records if getattr(r, "operation", None) == "advance_to"]
        assert "Advancing from" in advance[0].getMessage()
        assert advance[-1].now_at == target.isoformat()
        assert advance[-1].fired == 1
        assert advance[-1].success is True

    def test_schedule_logs_due_time(self, clock_records, t0):
        clock = VirtualClock(t0)
        due = clock.schedule(lambda c: None, at=t0 + timedelta(seconds=1))

        record = [r for r in clock_records.records if r.getMessage() == "Action scheduled"][-1]
        assert record.due == due.isoformat()
        assert record.name == "clockwise.clock"


class TestFormatters:

    def _record(self, **extra):
        record = logging.makeLogRecord({
            "name": "clockwise.clock",
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": "advance_to succeeded",
            "correlation_id": "1234567890",
            **extra,
        })
        return record

    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(self._record(now_at="2025-01-01T12:00:00+00:00")))
        assert data["logger"] == "clockwise.clock"
        assert data["correlation_id"] == "1234567890"
        assert data["clock"] == {"now_at": "2025-01-01T12:00:00+00:00"}
        assert "extra" not in data
        assert "source" not in data
        assert "virtual_now" not in data

    def test_json_groups_operation_clock_and_other_fields(self, t0):
        record = self._record(
            operation="advance_to", operation_id="abc", duration_ms=0.5, success=True,
            start=t0, fired=2, handler="on_tick",
        )
        data = json.loads(JSONFormatter().format(record))
        assert data["operation"] == {"name": "advance_to", "id": "abc", "duration_ms": 0.5, "success": True}
        assert data["clock"] == {"start": t0.isoformat(), "fired": 2}
        assert data["extra"] == {"handler": "on_tick"}

    def test_json_stamps_virtual_time(self, virtual_clock):
        data = json.loads(JSONFormatter().format(self._record()))
        assert data["virtual_now"] == virtual_clock.now().isoformat()

    def test_console_formatter(self):
        text = ConsoleFormatter(use_colors=False).format(self._record())
        assert "[CLOCK       ]" in text
        assert "[corr:12345678]" in text
        assert "[vt:" not in text
        assert text.endswith("advance_to succeeded")

    def test_console_appends_clock_fields(self, virtual_clock):
        text = ConsoleFormatter(use_colors=False).format(self._record(fired=1, now_at="T", handler="x"))
        assert f"[vt:{virtual_clock.now().isoformat()}]" in text
        assert text.endswith("advance_to succeeded | now_at=T fired=1")


class TestSetupLogging:

    def test_writes_stream_files(self, tmp_path):
        try:
            setup_logging(log_dir=tmp_path, log_level="DEBUG", console_level="CRITICAL", force=True)
            get_logger(LogStream.CLOCK).info("hello", extra={"k": 1})
            for handler in get_logger(LogStream.CLOCK).handlers:
                handler.flush()

            lines = (tmp_path / "clock" / "clock.log").read_text(encoding="utf-8").splitlines()
            assert json.loads(lines[-1])["message"] == "hello"
            assert (tmp_path / "system" / "system.log").exists()
        finally:
            setup_logging(log_dir=None, console_level="CRITICAL", force=True)
