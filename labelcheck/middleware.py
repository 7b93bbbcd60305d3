"""
ASGI middleware: request correlation and the last-resort error boundary.
"""

import traceback

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import JSONResponse

from labelcheck.config import is_production
from labelcheck.logging_config import (
    CORRELATION_HEADER,
    clear_request_context,
    get_correlation_id,
    get_logger,
    new_correlation_id,
    set_correlation_id,
)
from labelcheck.models.schemas import ErrorResponse

logger = get_logger(__name__)


class CorrelationIdMiddleware:
    """Reuses the caller's x-correlation-id, or mints one, and echoes it back."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        cid = Headers(scope=scope).get(CORRELATION_HEADER) or new_correlation_id()
        set_correlation_id(cid)
        clear_request_context()

        async def send_with_correlation(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                MutableHeaders(scope=message)[CORRELATION_HEADER] = cid
            await send(message)

        await self.app(scope, receive, send_with_correlation)


class ErrorBoundaryMiddleware:
    """
    Turns an unhandled exception into a 500 ErrorResponse.

    Production bodies carry a generic message and the correlation id only;
    development bodies add the exception text and stack trace under details.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def tracking_send(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception as exc:
            logger.error(
                f"Unhandled error on {scope.get('method')} {scope.get('path')}: {exc}",
                exc_info=True,
            )
            if response_started:
                raise

            details = {"correlationId": get_correlation_id()}
            if is_production():
                message = "Internal server error"
            else:
                message = str(exc) or type(exc).__name__
                details["stackTrace"] = traceback.format_exc()

            body = ErrorResponse(error="internal_error", message=message, details=details)
            response = JSONResponse(body.model_dump(), status_code=500)
            await response(scope, receive, send)
