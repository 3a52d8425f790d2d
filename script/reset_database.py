#!/usr/bin/env python3
"""
Database Reset Script
Reset the marketplace PostgreSQL database

Features:
1. Drop & Recreate Database - completely wipe the database
2. Run Alembic Migrations - create the latest schema

Notes:
- This script only resets database structure, does not seed data
- To seed demo data, run `python -m script.seed_data`
"""

import os
import subprocess
import sys

from sqlalchemy import create_engine, text

from src.platform.config.core_setting import settings
from src.platform.constant.path import BASE_DIR


def _parse_db_connection(sync_url: str) -> tuple[str, str]:
    """Split a database URL into (server_url, db_name)"""
    server_url, db_name = sync_url.rsplit('/', 1)
    return server_url, db_name


def _drop_and_create_db(server_url: str, db_name: str) -> None:
    admin_engine = create_engine(f'{server_url}/postgres', isolation_level='AUTOCOMMIT')

    try:
        with admin_engine.connect() as conn:
            conn.execute(
                text(
                    'SELECT pg_terminate_backend(pid) FROM pg_stat_activity '
                    'WHERE datname = :name AND pid <> pg_backend_pid()'
                ),
                {'name': db_name},
            )
            conn.execute(text(f'DROP DATABASE IF EXISTS {db_name}'))
            print(f"   ✅ Database '{db_name}' dropped")

            conn.execute(text(f'CREATE DATABASE {db_name}'))
            print(f"   ✅ Database '{db_name}' created")
    finally:
        admin_engine.dispose()


def _run_alembic_migrations() -> None:
    print("   🔄 Running 'alembic upgrade head'...")

    result = subprocess.run(
        ['alembic', 'upgrade', 'head'],
        cwd=BASE_DIR,
        capture_output=True,
        text=True,
        env=os.environ.copy(),
    )

    if result.returncode != 0:
        print(f'   ❌ Migration failed (return code: {result.returncode})')
        if result.stderr:
            print(f'   📋 STDERR: {result.stderr}')
        raise RuntimeError(f'Alembic migration failed with return code {result.returncode}')

    print('   ✅ Database migrations completed')


def main() -> int:
    server_url, db_name = _parse_db_connection(settings.DATABASE_URL_SYNC)
    print('🔄 Starting database reset...')
    print('=' * 50)

    try:
        print('🗑️ Dropping database...')
        _drop_and_create_db(server_url, db_name)

        print('🏗️ Running database migrations...')
        _run_alembic_migrations()
    except Exception as e:
        print(f'❌ Reset failed: {e}')
        return 1

    print('=' * 50)
    print('✅ Database reset completed!')
    return 0


if __name__ == '__main__':
    sys.exit(main())
