"""Database connectivity: async engine bootstrap, sessions, status tracking."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bestcity_api.errors import StoreError
from bestcity_api.models.base import Base
from bestcity_api.utils.metrics import NotesMetrics

logger = logging.getLogger(__name__)


class Database:
    """One pooled engine shared by every request for the process lifetime.

    ``connect()`` never raises: a missing URL or an unreachable server leaves
    the service running, and store calls fail with ``StoreError`` until the
    pool manages to connect. Reconnection is left to the pool itself.
    """

    def __init__(self, url: str | None, metrics: NotesMetrics, echo: bool = False) -> None:
        self.url = url
        self.metrics = metrics
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._connected = False
        self._lost = False
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        if not self.url:
            logger.warning("Database URL not found in environment variables")
            logger.warning("Please configure BESTCITY_DATABASE_URL in .env file")
            self._set_status(False)
            return
        if self.engine is not None:
            return

        engine = create_async_engine(self.url, echo=self.echo, pool_pre_ping=True)
        event.listen(engine.sync_engine, "connect", self._on_connect)
        event.listen(engine.sync_engine, "invalidate", self._on_invalidate)
        self.engine = engine
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

        try:
            await self.ensure_schema()
        except StoreError as e:
            logger.error(
                "Database connection error",
                extra={"error": str(e)},
                exc_info=True,
            )
            self._lost = True
            self._set_status(False)
            return

        self._lost = False
        logger.info(
            "Database connected",
            extra={"host": engine.url.host, "database": engine.url.database},
        )
        self._set_status(True)

    async def dispose(self) -> None:
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self._session_factory = None
        self._schema_ready = False
        self._set_status(False)
        logger.info("Database connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Unit of work: commit on success, rollback on any error."""
        if self._session_factory is None:
            raise StoreError("Database is not configured")
        if not self._schema_ready:
            await self.ensure_schema()
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ensure_schema(self) -> None:
        """Create the notes table once the store is reachable.

        Runs at startup and again on the first session after a failed startup.
        """
        async with self._schema_lock:
            if self._schema_ready:
                return
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except (SQLAlchemyError, OSError) as e:
                raise StoreError(str(e)) from e
            self._schema_ready = True

    def _set_status(self, connected: bool) -> None:
        self._connected = connected
        self.metrics.set_db_connection_status(connected)

    # Pool events fire synchronously inside the driver's connect/close paths

    def _on_connect(self, dbapi_connection: Any, connection_record: Any) -> None:
        if self._lost:
            self._lost = False
            logger.info("Database reconnected")
            self._set_status(True)

    def _on_invalidate(
        self, dbapi_connection: Any, connection_record: Any, exception: BaseException | None
    ) -> None:
        if exception is None:
            return
        self._lost = True
        logger.warning("Database disconnected", extra={"error": str(exception)})
        self._set_status(False)
