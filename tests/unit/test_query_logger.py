"""Tests for app.db.query_logger: slow query detection via SQLAlchemy events."""

import time
from unittest.mock import MagicMock, patch

from app.db.query_logger import STATEMENT_PREVIEW_CHARS, attach_query_logger


def _make_mock_engine():
    """Create a mock async engine with a sync engine and event listeners."""
    engine = MagicMock()
    engine.sync_engine = MagicMock()
    return engine


def _get_handlers(threshold_ms: float) -> dict:
    """Extract before/after handlers by invoking attach_query_logger."""
    handlers = {}

    def fake_listens_for(target, event_name):
        def decorator(fn):
            handlers[event_name] = fn
            return fn
        return decorator

    with patch("app.db.query_logger.event") as mock_event:
        mock_event.listens_for = fake_listens_for
        attach_query_logger(_make_mock_engine(), threshold_ms=threshold_ms)

    return handlers


def _conn() -> MagicMock:
    conn = MagicMock()
    conn.info = {}
    return conn


class TestAttachQueryLogger:

    def test_registers_before_and_after_events(self):
        with patch("app.db.query_logger.event") as mock_event:
            attach_query_logger(_make_mock_engine())
            events_registered = [c[0][1] for c in mock_event.listens_for.call_args_list]
        assert "before_cursor_execute" in events_registered
        assert "after_cursor_execute" in events_registered


class TestSlowQueryDetection:

    def test_fast_query_not_logged(self):
        handlers = _get_handlers(threshold_ms=10_000)
        conn = _conn()

        with patch("app.db.query_logger.logger") as mock_logger:
            handlers["before_cursor_execute"](conn, None, "SELECT 1", None, None, False)
            handlers["after_cursor_execute"](conn, None, "SELECT 1", None, None, False)
            mock_logger.warning.assert_not_called()

    def test_slow_query_logged_with_duration(self):
        handlers = _get_handlers(threshold_ms=0)
        conn = _conn()

        with patch("app.db.query_logger.logger") as mock_logger:
            handlers["before_cursor_execute"](conn, None, "SELECT * FROM products", None, None, False)
            time.sleep(0.001)
            handlers["after_cursor_execute"](conn, None, "SELECT * FROM products", None, None, False)

        mock_logger.warning.assert_called_once()
        args, kwargs = mock_logger.warning.call_args
        assert args[0] == "slow_query_detected"
        assert kwargs["extra"]["threshold_ms"] == 0
        assert kwargs["extra"]["duration_ms"] >= 0
        assert kwargs["extra"]["statement"] == "SELECT * FROM products"

    def test_no_error_when_no_start_time(self):
        handlers = _get_handlers(threshold_ms=0)

        with patch("app.db.query_logger.logger") as mock_logger:
            handlers["after_cursor_execute"](_conn(), None, "SELECT 1", None, None, False)
            mock_logger.warning.assert_not_called()

    def test_long_statement_truncated(self):
        handlers = _get_handlers(threshold_ms=0)
        conn = _conn()
        long_stmt = "SELECT " + "x" * 1000

        with patch("app.db.query_logger.logger") as mock_logger:
            handlers["before_cursor_execute"](conn, None, long_stmt, None, None, False)
            handlers["after_cursor_execute"](conn, None, long_stmt, None, None, False)

        statement = mock_logger.warning.call_args[1]["extra"]["statement"]
        assert len(statement) == STATEMENT_PREVIEW_CHARS

    def test_nested_queries_tracked_independently(self):
        handlers = _get_handlers(threshold_ms=0)
        conn = _conn()

        with patch("app.db.query_logger.logger") as mock_logger:
            handlers["before_cursor_execute"](conn, None, "Q1", None, None, False)
            handlers["before_cursor_execute"](conn, None, "Q2", None, None, False)
            handlers["after_cursor_execute"](conn, None, "Q2", None, None, False)
            handlers["after_cursor_execute"](conn, None, "Q1", None, None, False)

        assert mock_logger.warning.call_count == 2
        assert conn.info["query_start_time"] == []
