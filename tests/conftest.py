"""Test configuration with a throwaway SQLite database per test.

Each test gets its own database file under pytest's tmp_path, its own
metrics registry and its own app instance, so no external services are
needed and no state leaks between tests.
"""

from collections.abc import AsyncGenerator, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bestcity_api.config import Settings
from bestcity_api.database import Database
from bestcity_api.main import create_app
from bestcity_api.utils.metrics import NotesMetrics


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}",
        disable_file_logging=True,
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def metrics() -> NotesMetrics:
    return NotesMetrics()


@pytest.fixture
def sample(metrics: NotesMetrics) -> Callable[..., float]:
    """Read a sample from the test registry; missing samples read as 0."""

    def _sample(name: str, labels: dict[str, str] | None = None) -> float:
        return metrics.registry.get_sample_value(name, labels or {}) or 0.0

    return _sample


@pytest.fixture
async def database(settings: Settings, metrics: NotesMetrics) -> AsyncGenerator[Database, None]:
    db = Database(settings.database_url, metrics)
    await db.connect()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture
def app(settings: Settings, metrics: NotesMetrics, database: Database) -> FastAPI:
    # ASGITransport does not run the lifespan; the database fixture connects instead
    return create_app(settings, metrics=metrics, database=database)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
