"""Request middleware for context management and logging."""

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.core.context import request_scope


logger = structlog.get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id to every log line and times each request.

    The id comes from ``X-Request-ID`` when the caller sends one and is
    echoed back on the response. Paths under ``exclude_paths`` (health
    probes by default) are served without start/finish log lines.
    """

    REQUEST_ID_HEADER = "X-Request-ID"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = exclude_paths or ["/api/health"]

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        with request_scope(request.headers.get(self.REQUEST_ID_HEADER)) as request_id:
            request.state.request_id = request_id
            started = time.perf_counter()
            log_fields = {"method": request.method, "path": request.url.path}
            quiet = not self.log_requests or self._is_excluded(request.url.path)

            if not quiet:
                logger.info(
                    "request_started",
                    client_ip=self._client_ip(request),
                    **log_fields,
                )

            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception(
                    "request_failed",
                    error_type=type(e).__name__,
                    duration_ms=self._elapsed_ms(started),
                    **log_fields,
                )
                raise

            if not quiet:
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=self._elapsed_ms(started),
                    **log_fields,
                )

            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)

    def _is_excluded(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.exclude_paths)

    @staticmethod
    def _client_ip(request: Request) -> str | None:
        """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
        return request.client.host if request.client else None
