"""FastAPI middleware that captures failed requests and logs them to the DB.

Every 5xx response is recorded in the error_logs table, as are 4xx responses
other than auth failures, so staff can see broken insight requests.  Requests
routed to an insight carry its course id and name into the row.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import HTTPException, Request, Response
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from officehours.models.error_log import ErrorSeverity
from officehours.services.error_logger import RequestContext, log_error_standalone

logger = logging.getLogger("officehours.middleware")


def _user_id_from_request(request: Request) -> Optional[int]:
    from officehours.auth_utils import decode_token

    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    try:
        return int(decode_token(auth_header[7:]).get("sub", 0)) or None
    except (JWTError, ValueError, TypeError):
        return None


def _insight_scope(request: Request) -> tuple[Optional[int], Optional[str]]:
    """Course id and insight name from the matched route, once routing has run."""
    params = request.scope.get("path_params") or {}
    raw_course = str(params.get("course_id", ""))
    course_id = int(raw_course) if raw_course.isdigit() else None
    return course_id, params.get("insight_name")


class ErrorCaptureMiddleware(BaseHTTPMiddleware):
    """Catches unhandled exceptions, returns 500, and persists the error."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.time()
        user_id = _user_id_from_request(request)
        ip_address = request.client.host if request.client else None

        def context(status_code: int) -> RequestContext:
            return RequestContext(
                method=request.method,
                path=str(request.url.path),
                status_code=status_code,
                response_time_ms=round((time.time() - start) * 1000, 2),
                user_id=user_id,
                ip_address=ip_address,
            )

        try:
            response = await call_next(request)
        except Exception as exc:
            if isinstance(exc, HTTPException) and exc.status_code < 500:
                raise

            course_id, insight_name = _insight_scope(request)
            severity = ErrorSeverity.CRITICAL if "database" in str(exc).lower() else ErrorSeverity.ERROR
            await log_error_standalone(
                exc,
                severity=severity,
                module="middleware.error_capture",
                course_id=course_id,
                insight_name=insight_name,
                request=context(500),
            )
            logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error"},
            )

        if response.status_code >= 500:
            severity = ErrorSeverity.ERROR
        elif response.status_code >= 400 and response.status_code not in (401, 403):
            severity = ErrorSeverity.WARNING
        else:
            return response

        course_id, insight_name = _insight_scope(request)
        await log_error_standalone(
            Exception(f"HTTP {response.status_code} on {request.method} {request.url.path}"),
            severity=severity,
            module="middleware.error_capture",
            function_name="dispatch",
            course_id=course_id,
            insight_name=insight_name,
            request=context(response.status_code),
        )
        return response
