"""Shared pytest fixtures."""

# Clear settings cache before any imports to prevent stale values
from exposure_store.config import get_settings

get_settings.cache_clear()

import pytest
import uuid
from unittest.mock import AsyncMock, Mock
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone


class StepClock:
    """Deterministic UTC clock that advances by ``step`` on every call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + self.step
        return now

    def set(self, value: datetime) -> None:
        self.current = value


@pytest.fixture
def base_time():
    """A fixed UTC instant with microseconds, to catch precision loss."""
    return datetime(2025, 10, 8, 15, 24, 32, 123456, tzinfo=timezone.utc)


@pytest.fixture
def step_clock(base_time):
    """Clock advancing one second per reading."""
    return StepClock(base_time)


@pytest.fixture
def frozen_clock(base_time):
    """Clock that always reads the same instant."""
    return StepClock(base_time, step=timedelta(0))


@pytest.fixture
def sample_uuid():
    """Return a sample UUID string."""
    return str(uuid.uuid4())


# Database mocking fixtures


@pytest.fixture
def mock_async_session():
    """Create a mock AsyncSession for repository tests."""
    session = AsyncMock()

    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=None)
    mock_result.scalar_one = Mock(return_value=0)
    mock_result.scalars = Mock(return_value=Mock(all=Mock(return_value=[])))
    mock_result.rowcount = 0

    session.execute = AsyncMock(return_value=mock_result)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = Mock()
    session.get_bind = Mock(return_value=Mock(dialect=Mock()))
    session.get_bind.return_value.dialect.name = "sqlite"

    @asynccontextmanager
    async def begin():
        yield

    session.begin = begin

    return session
