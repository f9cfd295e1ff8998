import asyncio
import logging
import sys
from types import TracebackType
from typing import Any

import uvicorn

from bestcity_api.config import Settings
from bestcity_api.main import create_app
from bestcity_api.utils.log_config import (
    EXCEPTIONS_LOGGER,
    REJECTIONS_LOGGER,
    setup_logging,
)

logger = logging.getLogger(__name__)


def log_uncaught_exception(
    exc_type: type[BaseException],
    exc: BaseException,
    tb: TracebackType | None,
) -> None:
    logging.getLogger(EXCEPTIONS_LOGGER).error(
        "Uncaught Exception: %s",
        exc,
        extra={"error": str(exc)},
        exc_info=(exc_type, exc, tb),
    )


class FatalErrorMonitor:
    """Loop exception handler: an error nobody awaited stops the server."""

    def __init__(self, server: uvicorn.Server) -> None:
        self.server = server
        self.failed = False

    def __call__(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        message = context.get("message", "Unhandled error in event loop")
        logging.getLogger(REJECTIONS_LOGGER).error(
            "Unhandled Rejection: %s",
            exc or message,
            extra={"error": str(exc) if exc else message},
            exc_info=exc,
        )
        self.failed = True
        self.server.should_exit = True


async def serve(server: uvicorn.Server) -> bool:
    """Run the server; return True when it stopped because of a fatal error."""
    monitor = FatalErrorMonitor(server)
    asyncio.get_running_loop().set_exception_handler(monitor)
    await server.serve()
    return monitor.failed


def main() -> None:
    settings = Settings()
    setup_logging(settings)
    sys.excepthook = log_uncaught_exception

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,
        access_log=False,
    )
    server = uvicorn.Server(config)
    logger.info(
        "Starting server on %s:%s",
        settings.app_host,
        settings.app_port,
        extra={"port": settings.app_port, "environment": settings.environment},
    )

    try:
        failed = asyncio.run(serve(server))
    except Exception as e:
        log_uncaught_exception(type(e), e, e.__traceback__)
        sys.exit(1)

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
