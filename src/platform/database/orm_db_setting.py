"""
SQLAlchemy async engine and session management with Read-Write Separation

This module provides:
1. AsyncEngineManager: Manages separate read/write engines with event loop awareness
2. Database class: session factory handed to repositories and units of work through DI

Read-Write Separation:
- Write operations (every unit of work): always the primary database
- Read-only queries: read replica if configured, otherwise the primary

Configuration:
- POSTGRES_REPLICA_SERVER: Optional read replica hostname
- POSTGRES_REPLICA_PORT: Optional read replica port
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# =============================================================================
# Event-loop-aware Engine Manager
# =============================================================================


class AsyncEngineManager:
    """
    Owns one write engine and one read engine, both bound to the running loop.

    pytest-asyncio creates one loop per test and the job CLI runs its own loop;
    an engine from another loop fails with "attached to a different loop", so a
    loop change drops the cached engines.
    """

    def __init__(self) -> None:
        self._engines: dict[bool, AsyncEngine] = {}
        self._session_makers: dict[bool, async_sessionmaker[AsyncSession]] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    def _check_loop(self) -> None:
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._loop is current_loop:
            return
        if self._engines:
            Logger.base.warning('🔄 [DB] Event loop changed, dropping old engines')
        self._engines.clear()
        self._session_makers.clear()
        self._loop = current_loop

    def get_engine(self, *, read_only: bool = False) -> AsyncEngine:
        self._check_loop()
        if read_only not in self._engines:
            Logger.base.info(f'🔗 [DB] Creating {"read" if read_only else "write"} engine')
            self._engines[read_only] = self._create_engine(read_only=read_only)
        return self._engines[read_only]

    def get_session_maker(self, *, read_only: bool = False) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine(read_only=read_only)
        if read_only not in self._session_makers:
            self._session_makers[read_only] = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._session_makers[read_only]

    async def dispose(self) -> None:
        for engine in self._engines.values():
            await engine.dispose()
        self._engines.clear()
        self._session_makers.clear()
        self._loop = None

    @staticmethod
    def _create_engine(*, read_only: bool) -> AsyncEngine:
        return create_async_engine(
            settings.DATABASE_READ_URL_ASYNC if read_only else settings.DATABASE_URL_ASYNC,
            echo=False,
            pool_size=settings.DB_POOL_SIZE_READ if read_only else settings.DB_POOL_SIZE_WRITE,
            max_overflow=settings.DB_POOL_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=settings.DB_POOL_PRE_PING,
            connect_args={
                'server_settings': {
                    'application_name': 'resale-marketplace',
                    # Webhook and sweeper both take FOR UPDATE on orders
                    'lock_timeout': str(settings.DB_LOCK_TIMEOUT_MS),
                }
            },
        )


# Global engine manager
_engine_manager = AsyncEngineManager()


def get_engine(*, read_only: bool = False) -> AsyncEngine:
    """Get event-loop-aware engine (read_only: use replica if available)"""
    return _engine_manager.get_engine(read_only=read_only)


def get_session_maker(*, read_only: bool = False) -> async_sessionmaker[AsyncSession]:
    """Get event-loop-aware session maker (read_only: use replica if available)"""
    return _engine_manager.get_session_maker(read_only=read_only)


async def dispose_engines() -> None:
    await _engine_manager.dispose()


# =============================================================================
# Base Model
# =============================================================================

# Deterministic constraint names so alembic autogenerate matches the migrations
_NAMING_CONVENTION = {
    'ix': 'ix_%(column_0_label)s',
    'uq': 'uq_%(table_name)s_%(column_0_name)s',
    'ck': 'ck_%(table_name)s_%(constraint_name)s',
    'fk': 'fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s',
    'pk': 'pk_%(table_name)s',
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=_NAMING_CONVENTION)


# =============================================================================
# Database Class (for DI)
# =============================================================================


class Database:
    """
    Database session factory for dependency injection

    Delegates to AsyncEngineManager for event-loop-aware engine management
    and read-write separation support.
    """

    def __init__(self, *, read_only: bool = False) -> None:
        self._read_only = read_only

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions

        Note: the session rolls back any uncommitted work when the block exits
        """
        session_maker = get_session_maker(read_only=self._read_only)
        async with session_maker() as session:
            yield session
