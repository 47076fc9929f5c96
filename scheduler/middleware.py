"""Request logging, switched on with ``REQUEST_DEBUG``."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, target, status and duration.

    Server errors are logged at WARNING so they surface without debug logging.
    """

    def __init__(self, app, logger: logging.Logger | None = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("scheduler.http")

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        try:
            response = await call_next(request)
        except Exception:
            self.logger.warning(
                "%s %s raised after %.1fms", request.method, target, _elapsed_ms(started)
            )
            raise
        level = logging.WARNING if response.status_code >= 500 else logging.DEBUG
        self.logger.log(
            level,
            "%s %s -> %d in %.1fms",
            request.method,
            target,
            response.status_code,
            _elapsed_ms(started),
        )
        return response
