"""Tests for error logging: row construction, persistence and the standalone path."""

import logging
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from officehours.models import ErrorLog, ErrorSeverity
from officehours.services.error_logger import (
    MESSAGE_LIMIT,
    RequestContext,
    build_error_log,
    log_error,
    log_error_standalone,
)


def _raised(exc: Exception) -> Exception:
    try:
        raise exc
    except Exception as caught:
        return caught


class TestBuildErrorLog:
    def test_insight_context(self):
        entry = build_error_log(
            ValueError("bad courseId"),
            module="api.insights",
            function_name="get_insight_value",
            course_id=4,
            insight_name="MedianWaitTime",
        )
        assert entry.error_type == "ValueError"
        assert entry.message == "bad courseId"
        assert entry.course_id == 4
        assert entry.insight_name == "MedianWaitTime"
        assert entry.request_path is None

    def test_origin_read_from_traceback(self):
        entry = build_error_log(_raised(RuntimeError("boom")))
        assert entry.module.endswith("test_error_logger.py")
        assert entry.function_name == "_raised"
        assert entry.line_number is not None

    def test_explicit_module_wins(self):
        entry = build_error_log(_raised(RuntimeError("boom")), module="api.queues")
        assert entry.module == "api.queues"
        assert entry.line_number is None

    def test_request_context(self):
        request = RequestContext(
            method="GET", path="/api/insights/3/TotalStudents", status_code=500,
            response_time_ms=12.5, user_id=7, ip_address="10.0.0.1",
        )
        entry = build_error_log(RuntimeError("boom"), request=request)
        assert entry.request_method == "GET"
        assert entry.request_path == "/api/insights/3/TotalStudents"
        assert entry.status_code == 500
        assert entry.user_id == 7
        assert entry.ip_address == "10.0.0.1"

    def test_control_characters_replaced_and_truncated(self):
        entry = build_error_log(RuntimeError("a\x00b\nc" + "x" * (MESSAGE_LIMIT * 2)))
        assert entry.message.startswith("a b\nc")
        assert len(entry.message) == MESSAGE_LIMIT


class TestLogError:
    @pytest.mark.asyncio
    async def test_without_session_only_logs(self, caplog):
        with caplog.at_level(logging.ERROR, logger="officehours.errors"):
            result = await log_error(RuntimeError("boom"), course_id=2, insight_name="TotalStudents")
        assert result is None
        assert "insight=TotalStudents course=2" in caplog.text
        assert "RuntimeError: boom" in caplog.text

    @pytest.mark.asyncio
    async def test_log_level_follows_severity(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="officehours.errors"):
            await log_error(RuntimeError("slow"), severity=ErrorSeverity.WARNING)
        assert caplog.records[-1].levelno == logging.WARNING

    @pytest.mark.asyncio
    async def test_persists_row(self, db):
        entry = await log_error(
            OperationalError("SELECT 1", {}, Exception("connection lost")),
            db=db,
            module="api.insights",
            function_name="get_insight_value",
            course_id=9,
            insight_name="MostActiveStudents",
        )

        rows = (await db.execute(select(ErrorLog))).scalars().all()
        assert rows == [entry]
        assert rows[0].error_type == "OperationalError"
        assert rows[0].severity == ErrorSeverity.ERROR
        assert rows[0].insight_name == "MostActiveStudents"

    @pytest.mark.asyncio
    async def test_store_failure_does_not_raise(self):
        db = MagicMock()
        db.flush = AsyncMock(side_effect=SQLAlchemyError("disk full"))

        result = await log_error(RuntimeError("boom"), db=db)

        assert result is None
        db.add.assert_called_once()


class TestLogErrorStandalone:
    @pytest.mark.asyncio
    async def test_commits_on_own_session(self):
        session = MagicMock()
        session.flush = AsyncMock()
        session.commit = AsyncMock()

        @asynccontextmanager
        async def factory():
            yield session

        with patch("officehours.database.async_session", new=factory):
            entry = await log_error_standalone(RuntimeError("boom"), insight_name="TotalStudents")

        assert entry.insight_name == "TotalStudents"
        session.add.assert_called_once_with(entry)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_database(self):
        @asynccontextmanager
        async def factory():
            raise ConnectionRefusedError("connection refused")
            yield

        with patch("officehours.database.async_session", new=factory):
            assert await log_error_standalone(RuntimeError("boom")) is None
