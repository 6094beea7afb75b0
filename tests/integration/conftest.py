"""Integration test configuration with a real database.

Defaults to a throwaway SQLite file per test (aiosqlite). Point
TEST_DATABASE_URL at an async PostgreSQL or MySQL URL to run the same
tests against those backends.
"""

import os
import uuid
import pytest
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from exposure_store.config import Settings
from exposure_store.database import (
    Base,
    create_engine_from_settings,
    create_session_factory,
    init_db,
    session_scope,
)
from exposure_store.models import Organization, User
from exposure_store.services.report_store import ReportStore

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


def pytest_collection_modifyitems(items):
    """Apply integration marker to all tests in this directory."""
    for item in items:
        if "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        storage_retry_attempts=5,
        storage_retry_min_wait_seconds=0.01,
        storage_retry_max_wait_seconds=0.1,
        list_page_size=2,
    )


@pytest.fixture
async def test_engine(tmp_path, test_settings) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on a fresh schema for each test."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'exposure_test.db'}"
    engine = create_engine_from_settings(test_settings, url=url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await init_db(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A plain session; tests decide when to commit or roll back."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def report_store(session_factory, test_settings, step_clock) -> ReportStore:
    return ReportStore(session_factory=session_factory, settings=test_settings, clock=step_clock)


# =============================================================================
# Owner Fixtures
# =============================================================================


async def make_user(session_factory) -> str:
    async with session_scope(session_factory) as session:
        user = User(email=f"test-{uuid.uuid4().hex[:8]}@example.com")
        session.add(user)
        await session.flush()
        return user.id


async def make_organization(session_factory) -> str:
    async with session_scope(session_factory) as session:
        org = Organization(name=f"org-{uuid.uuid4().hex[:8]}")
        session.add(org)
        await session.flush()
        return org.id


@pytest.fixture
async def user_id(session_factory) -> str:
    """ID of a user that exists in the directory."""
    return await make_user(session_factory)


@pytest.fixture
async def org_id(session_factory) -> str:
    """ID of an organization that exists in the directory."""
    return await make_organization(session_factory)


@pytest.fixture
def new_user(session_factory):
    """Factory creating additional users on demand."""

    async def _make() -> str:
        return await make_user(session_factory)

    return _make


@pytest.fixture
def new_org(session_factory):
    """Factory creating additional organizations on demand."""

    async def _make() -> str:
        return await make_organization(session_factory)

    return _make
