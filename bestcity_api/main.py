import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bestcity_api.api.health import router as health_router
from bestcity_api.api.metrics import router as metrics_router
from bestcity_api.api.notes import router as notes_router
from bestcity_api.config import Settings, settings as default_settings
from bestcity_api.database import Database
from bestcity_api.handlers.notes import NotesController
from bestcity_api.middlewares import AccessLogMiddleware, MetricsMiddleware
from bestcity_api.utils.log_config import LoggerWriter
from bestcity_api.utils.metrics import NotesMetrics

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("bestcity_api.access")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await app.state.database.connect()
    yield
    # Shutdown
    await app.state.database.dispose()


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info("Invalid request body on %s: %s", request.url.path, detail)
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request body", "error": detail},
    )


def create_app(
    settings: Settings | None = None,
    *,
    metrics: NotesMetrics | None = None,
    database: Database | None = None,
) -> FastAPI:
    settings = settings or default_settings
    metrics = metrics or NotesMetrics(prefix=settings.metrics_prefix)
    database = database or Database(settings.database_url, metrics, echo=settings.db_echo)

    app = FastAPI(
        title="BestCity API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.database = database
    app.state.notes_controller = NotesController(database, metrics)

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Last added runs first: timing wraps access logging and dispatch
    app.add_middleware(AccessLogMiddleware, stream=LoggerWriter(access_logger))
    app.add_middleware(MetricsMiddleware, metrics=metrics)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(notes_router, prefix=settings.api_prefix)

    return app
