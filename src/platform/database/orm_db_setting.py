"""
SQLAlchemy async engine and session management

This module provides:
1. AsyncEngineManager: one engine per database URL, rebuilt when the event loop changes
2. Database class (engine + session factory handed to the DI container)
3. Base model and the UTCDateTime column type shared by every table

Isolation:
- PostgreSQL engines run at settings.DB_ISOLATION_LEVEL (SERIALIZABLE by default)
  so that read-then-write use cases surface conflicts as retryable errors
- SQLite (tests) keeps its default serialized writer behaviour
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import DateTime
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# =============================================================================
# Base Model
# =============================================================================


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always round-trips as UTC (SQLite drops tzinfo)"""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _register_models() -> None:
    # Importing the models package registers every table on Base.metadata
    import src.service.reservation.driven_adapter.model  # noqa: F401


# =============================================================================
# Event-loop-aware Engine Manager
# =============================================================================


class AsyncEngineManager:
    """
    Manages a SQLAlchemy async engine with event loop awareness.

    Ensures the engine is always bound to the current event loop to prevent
    "Task got Future attached to a different loop" errors (TestClient and
    pytest-asyncio each run their own loop).
    """

    def __init__(self, *, url: str) -> None:
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_postgres(self) -> bool:
        return self._url.startswith('postgresql')

    def get_engine(self) -> AsyncEngine:
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop running, create engine without loop tracking
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

        if self._loop is not current_loop:
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, disposing old engine...')
                # dispose() cannot be awaited from this sync method; the old engine is GC'd
                self._engine = None
                self._session_maker = None

            Logger.base.info(f'🔗 [DB] Creating engine for event loop {id(current_loop)}')
            self._engine = self._create_engine()
            self._loop = current_loop

        assert self._engine is not None
        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        self._loop = None

    def _create_engine(self) -> AsyncEngine:
        """
        Pool configuration is centralized in settings for easy tuning.
        Pool and isolation options only apply to PostgreSQL; aiosqlite picks its own pool.
        """
        if not self.is_postgres:
            return create_async_engine(self._url, echo=settings.DB_ECHO, future=True)

        return create_async_engine(
            self._url,
            echo=settings.DB_ECHO,
            future=True,
            isolation_level=settings.DB_ISOLATION_LEVEL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=settings.DB_POOL_PRE_PING,
        )


# =============================================================================
# Database Class (for DI)
# =============================================================================


class Database:
    """
    Database handle for the dependency injection container.

    Each instance owns its AsyncEngineManager, so tests can point a container
    at a throwaway SQLite file while production uses settings.DATABASE_URL_ASYNC.
    """

    def __init__(self, *, url: str | None = None) -> None:
        self.url = url or settings.DATABASE_URL_ASYNC
        self._engine_manager = AsyncEngineManager(url=self.url)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine_manager.get_engine()

    def session_factory(self) -> AsyncSession:
        """Create a new session bound to the current event loop's engine"""
        return self._engine_manager.get_session_maker()()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions

        Note: Automatically handles rollback on exception
        """
        async with self._engine_manager.get_session_maker()() as session:
            yield session

    async def create_tables(self) -> None:
        """Create database tables if they don't exist"""
        _register_models()
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        except Exception as e:
            error_msg = str(e).lower()
            if any(
                keyword in error_msg
                for keyword in ['already exists', 'duplicate key', 'unique constraint']
            ):
                # Another worker process created the tables concurrently
                Logger.base.warning(f'⚠️ [DB] Tables already created by another process: {e}')
                return
            raise

    async def drop_tables(self) -> None:
        _register_models()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine_manager.dispose()
