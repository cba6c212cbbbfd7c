"""Error logging for failed requests and insight computations.

Every captured exception goes to the ``officehours.errors`` logger at the
level matching its severity.  When a session is at hand it is also stored as
an ``ErrorLog`` row tagged with the course and insight involved, so staff can
tell which dashboard card broke and for which course.

API handlers log on the request's own session and re-raise::

    except Exception as e:
        await log_error(e, db=db, module="api.insights", function_name="get_insight_value",
                        course_id=course_id, insight_name=insight_name)
        raise

The error-capture middleware has no session and uses ``log_error_standalone``.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from officehours.models.error_log import ErrorLog, ErrorSeverity

logger = logging.getLogger("officehours.errors")

MESSAGE_LIMIT = 2000
TRACEBACK_LIMIT = 10000

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass(frozen=True)
class RequestContext:
    """What the middleware knows about the request that failed."""
    method: str
    path: str
    status_code: Optional[int] = None
    response_time_ms: Optional[float] = None
    user_id: Optional[int] = None
    ip_address: Optional[str] = None


def _clean(value: object, limit: int) -> Optional[str]:
    """Replace control characters (other than newlines and tabs) and truncate."""
    if value is None:
        return None
    text = "".join(ch if ch >= " " or ch in "\n\r\t" else " " for ch in str(value))
    return text[:limit]


def _origin(exc: BaseException) -> tuple[Optional[str], Optional[str], Optional[int]]:
    """File, function and line of the innermost traceback frame."""
    tb = exc.__traceback__
    if tb is None:
        return None, None, None
    while tb.tb_next:
        tb = tb.tb_next
    code = tb.tb_frame.f_code
    return code.co_filename, code.co_name, tb.tb_lineno


def build_error_log(
    exc: BaseException,
    *,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    module: Optional[str] = None,
    function_name: Optional[str] = None,
    course_id: Optional[int] = None,
    insight_name: Optional[str] = None,
    request: Optional[RequestContext] = None,
) -> ErrorLog:
    """An unsaved ``ErrorLog`` row for ``exc``.

    Without an explicit ``module`` the origin is read off the traceback.
    """
    line_number = None
    if module is None:
        module, frame_function, line_number = _origin(exc)
        function_name = function_name or frame_function

    return ErrorLog(
        severity=severity,
        error_type=type(exc).__name__,
        message=_clean(exc, MESSAGE_LIMIT),
        traceback=_clean(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            TRACEBACK_LIMIT,
        ),
        module=_clean(module, 300),
        function_name=_clean(function_name, 200),
        line_number=line_number,
        course_id=course_id,
        insight_name=_clean(insight_name, 100),
        request_method=request.method if request else None,
        request_path=_clean(request.path, 500) if request else None,
        status_code=request.status_code if request else None,
        response_time_ms=request.response_time_ms if request else None,
        user_id=request.user_id if request else None,
        ip_address=_clean(request.ip_address, 45) if request else None,
    )


def _where(entry: ErrorLog) -> str:
    parts = []
    if entry.request_path:
        parts.append(f"{entry.request_method or '?'} {entry.request_path}")
    if entry.insight_name:
        parts.append(f"insight={entry.insight_name}")
    if entry.course_id is not None:
        parts.append(f"course={entry.course_id}")
    return f"[{' '.join(parts)}] " if parts else ""


async def log_error(
    exc: BaseException,
    *,
    db: Optional[AsyncSession] = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    module: Optional[str] = None,
    function_name: Optional[str] = None,
    course_id: Optional[int] = None,
    insight_name: Optional[str] = None,
    request: Optional[RequestContext] = None,
) -> Optional[ErrorLog]:
    """Log ``exc`` and, given a session, add it to ``error_logs``.

    Returns the flushed row, or None when there is no session or the row
    could not be written.  Never raises on its own account.
    """
    entry = build_error_log(
        exc,
        severity=severity,
        module=module,
        function_name=function_name,
        course_id=course_id,
        insight_name=insight_name,
        request=request,
    )
    logger.log(
        _LOG_LEVELS[severity], "%s%s: %s", _where(entry), entry.error_type, entry.message,
        exc_info=exc,
    )

    if db is None:
        return None
    try:
        db.add(entry)
        await db.flush()
    except SQLAlchemyError as db_err:
        logger.warning("Could not store error log: %s", db_err)
        return None
    return entry


async def log_error_standalone(
    exc: BaseException,
    *,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    module: Optional[str] = None,
    function_name: Optional[str] = None,
    course_id: Optional[int] = None,
    insight_name: Optional[str] = None,
    request: Optional[RequestContext] = None,
) -> Optional[ErrorLog]:
    """``log_error`` on a session of its own, committed immediately."""
    from officehours.database import async_session

    try:
        async with async_session() as db:
            entry = await log_error(
                exc,
                db=db,
                severity=severity,
                module=module,
                function_name=function_name,
                course_id=course_id,
                insight_name=insight_name,
                request=request,
            )
            await db.commit()
            return entry
    except (SQLAlchemyError, OSError) as db_err:
        logger.warning("Could not open a session for error log: %s", db_err)
        return None
