"""Infrastructure resources: database engine and transactional sessions.

This module is part of the infra layer and must not import from application features.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import MetaData, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError as SAIntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from api.shared.exceptions import IntegrityError

logger = structlog.get_logger("conversation.infra")


class DatabaseResource:
    """Database resource for dependency injection."""

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        lock_timeout: Optional[str] = None,
        statement_timeout: Optional[str] = None,
    ):
        self.database_url = database_url
        self.echo = echo
        self.lock_timeout = lock_timeout
        self.statement_timeout = statement_timeout
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def init(self):
        """Initialize database connection."""
        if self.engine is not None:
            return self
        self.engine = create_async_engine(
            self.database_url,
            echo=self.echo,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args=self.connect_args(),
        )
        event.listen(self.engine.sync_engine, "connect", self._on_connect)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine initialized", dialect=self.engine.dialect.name)
        return self

    def connect_args(self) -> dict:
        """Driver connect arguments.

        On asyncpg the timeouts are sent as startup parameters, so they are
        session defaults that no transaction rollback can discard.
        """
        url = make_url(self.database_url)
        if url.get_driver_name() != "asyncpg":
            return {}
        server_settings = {}
        if self.lock_timeout:
            server_settings["lock_timeout"] = self.lock_timeout
        if self.statement_timeout:
            server_settings["statement_timeout"] = self.statement_timeout
        return {"server_settings": server_settings} if server_settings else {}

    def _on_connect(self, dbapi_connection, _connection_record) -> None:
        if self.engine is None or self.engine.dialect.name != "sqlite":
            return
        cursor = dbapi_connection.cursor()
        try:
            # SQLite leaves FK enforcement (and ON DELETE CASCADE) off by default
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """Yield a session inside one transaction.

        Commits when the block exits normally and rolls back on any exception.
        Storage-level constraint violations surface as ``IntegrityError``.
        """
        session = self.get_session()
        try:
            async with session.begin():
                yield session
        except SAIntegrityError as e:
            logger.error("Transaction rolled back on integrity failure", error=str(e.orig))
            raise IntegrityError(
                "Storage constraint violated", {"reason": str(e.orig)}
            ) from e
        finally:
            await session.close()

    async def create_schema(self, metadata: MetaData) -> None:
        """Create all tables for the given metadata (local and test setups)."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def shutdown(self):
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
