"""Request timing middleware: feeds the HTTP metrics of NotesMetrics."""

import time
from collections.abc import Iterable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import BaseRoute, Match
from starlette.types import ASGIApp

from bestcity_api.utils.metrics import NotesMetrics

UNMATCHED_ROUTE = "unmatched"


def _match_template(
    routes: Iterable[BaseRoute], scope: dict[str, Any], prefix: str = ""
) -> str | None:
    partial = None
    for route in routes:
        match, child_scope = route.matches(scope)
        if match == Match.NONE:
            continue
        path = prefix + getattr(route, "path", "")
        children = getattr(route, "routes", None)
        if children:
            nested = _match_template(children, {**scope, **child_scope}, path)
            if nested is None:
                continue
            path = nested
        if match == Match.FULL:
            return path
        partial = partial or path
    return partial


def route_label(request: Request) -> str:
    """Full route template (prefix included) the request matches.

    Requests matching no route share one label. Call before routing runs,
    since nested routers rewrite the scope.
    """
    return _match_template(request.app.routes, dict(request.scope)) or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, metrics: NotesMetrics) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        route = route_label(request)
        start = time.perf_counter()
        status_code = 500
        self.metrics.active_connections.inc()
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            self.metrics.observe_request(
                request.method,
                route,
                status_code,
                time.perf_counter() - start,
            )
            self.metrics.active_connections.dec()
