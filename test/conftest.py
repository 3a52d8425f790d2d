"""
Test Configuration and Fixtures

This module provides:
- Environment setup that must run before any application import
- Integration database setup (migrations via alembic, truncation between tests)

Architecture:
- Unit tests (test/**/unit/): run against the in-memory unit of work, no infrastructure
- Integration tests (@pytest.mark.integration): real PostgreSQL, skipped when unreachable
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings and the loguru sinks read these at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    if worker_id == 'master':
        os.environ['POSTGRES_DB'] = 'resale_marketplace_test_db'
    else:
        os.environ['POSTGRES_DB'] = f'resale_marketplace_test_db_{worker_id}'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ.setdefault('DB_POOL_SIZE_WRITE', '5')
    os.environ.setdefault('DB_POOL_SIZE_READ', '2')
    os.environ.setdefault('DB_POOL_MAX_OVERFLOW', '5')
    os.environ.setdefault('JOBS_ENABLED', 'false')
    os.environ.setdefault('JOB_TRIGGER_TOKEN', 'test_job_trigger_token')


# Call immediately to set env vars before any imports
_early_setup_test_environment()

from collections.abc import AsyncGenerator  # noqa: E402

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from src.platform.config.core_setting import settings  # noqa: E402
from src.platform.constant.path import ALEMBIC_INI_PATH  # noqa: E402


# =============================================================================
# Database Setup and Cleanup
# =============================================================================
_database_ready: bool | None = None
_cached_tables: list[str] | None = None


async def _setup_test_database() -> bool:
    """Create the test database and migrate it to head; False when PostgreSQL is unreachable"""
    postgres_url = settings.DATABASE_URL_ASYNC.replace(f'/{settings.POSTGRES_DB}', '/postgres')
    engine = create_async_engine(postgres_url, isolation_level='AUTOCOMMIT')
    try:
        async with engine.begin() as conn:
            result = await conn.execute(
                text('SELECT 1 FROM pg_database WHERE datname = :name'),
                {'name': settings.POSTGRES_DB},
            )
            if not result.fetchone():
                await conn.execute(text(f'CREATE DATABASE {settings.POSTGRES_DB}'))
    except (OSError, ConnectionError):
        return False
    finally:
        await engine.dispose()

    reset_engine = create_async_engine(settings.DATABASE_URL_ASYNC)
    async with reset_engine.begin() as conn:
        await conn.execute(text('DROP SCHEMA public CASCADE'))
        await conn.execute(text('CREATE SCHEMA public'))
    await reset_engine.dispose()

    alembic_cfg = Config(str(ALEMBIC_INI_PATH))
    alembic_cfg.set_main_option('sqlalchemy.url', settings.DATABASE_URL_SYNC)
    command.upgrade(alembic_cfg, 'head')
    return True


async def _clean_all_tables() -> None:
    global _cached_tables
    engine = create_async_engine(settings.DATABASE_URL_ASYNC)
    try:
        async with engine.begin() as conn:
            if _cached_tables is None:
                result = await conn.execute(
                    text(
                        "SELECT tablename FROM pg_tables WHERE schemaname = 'public' "
                        "AND tablename != 'alembic_version'"
                    )
                )
                _cached_tables = [row[0] for row in result]
            if _cached_tables:
                quoted = [f'"{t}"' for t in _cached_tables]
                await conn.execute(text(f'TRUNCATE {", ".join(quoted)} RESTART IDENTITY CASCADE'))
    finally:
        await engine.dispose()


# =============================================================================
# Integration Test Fixtures
# =============================================================================
@pytest.fixture(scope='function')
async def clean_database() -> AsyncGenerator[None, None]:
    global _database_ready
    if _database_ready is None:
        _database_ready = await _setup_test_database()
    if not _database_ready:
        pytest.skip('PostgreSQL is not reachable')

    await _clean_all_tables()
    yield

    from src.platform.database.orm_db_setting import dispose_engines

    await dispose_engines()


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if item.get_closest_marker('integration'):
            item.fixturenames.append('clean_database')
