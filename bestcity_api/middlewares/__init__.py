"""HTTP middlewares."""

from bestcity_api.middlewares.logging import AccessLogMiddleware
from bestcity_api.middlewares.metrics import MetricsMiddleware

__all__ = [
    "AccessLogMiddleware",
    "MetricsMiddleware",
]
