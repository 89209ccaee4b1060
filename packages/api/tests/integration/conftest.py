# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container provides PostgreSQL; migrations run once.
Function-scoped sessions wrap each test in a savepoint that is rolled
back afterwards, so tests don't leak state.
"""

import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

from stayverify.services.notifications import NotificationHub

pytestmark = pytest.mark.integration

DB_PACKAGE = Path(__file__).resolve().parents[3] / "db"


@pytest.fixture(scope="session")
def pg_container():
    with PostgresContainer(
        image="postgres:16",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def sync_db_url(pg_container):
    """Sync DB URL for Alembic (psycopg2)."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql://test:test@{host}:{port}/test"


@pytest.fixture(scope="session", autouse=True)
def _run_migrations(sync_db_url):
    """alembic upgrade head against the container."""
    from alembic import command
    from alembic.config import Config

    os.environ["DATABASE_URL"] = sync_db_url
    alembic_cfg = Config(str(DB_PACKAGE / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(DB_PACKAGE / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_db_url)
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test DB session with savepoint rollback."""
    conn = await async_engine.connect()
    txn = await conn.begin()
    session = AsyncSession(
        bind=conn,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    yield session
    await session.close()
    await txn.rollback()
    await conn.close()


@pytest.fixture
def storage():
    """Object storage is out of scope here; uploads echo their key."""
    mock = MagicMock()

    async def _upload(data, object_key, content_type):
        return object_key

    mock.upload_file = AsyncMock(side_effect=_upload)
    return mock


@pytest.fixture
def hub():
    return NotificationHub()
