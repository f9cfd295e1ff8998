"""Access log middleware: one combined-format line per HTTP request."""

import time
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from bestcity_api.utils.log_config import LoggerWriter


def format_access_line(
    request: Request, status_code: int, content_length: str | None, elapsed_ms: float
) -> str:
    client = request.client.host if request.client else "-"
    timestamp = datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S +0000")
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    version = request.scope.get("http_version", "1.1")
    referer = request.headers.get("referer", "-")
    user_agent = request.headers.get("user-agent", "-")
    return (
        f'{client} - - [{timestamp}] "{request.method} {target} HTTP/{version}" '
        f'{status_code} {content_length or "-"} "{referer}" "{user_agent}" '
        f"- {elapsed_ms:.3f} ms"
    )


class AccessLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, stream: LoggerWriter) -> None:
        super().__init__(app)
        self.stream = stream

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        status_code = 500
        content_length = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            content_length = response.headers.get("content-length")
            return response
        finally:
            elapsed = (time.monotonic() - start) * 1000
            self.stream.write(
                format_access_line(request, status_code, content_length, elapsed) + "\n"
            )
