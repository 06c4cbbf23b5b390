"""Shared fixtures: a temp-file SQLite database, a frozen clock, default settings."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from servicebay.config import Settings
from servicebay.models import Base
from servicebay.services.timeutils import FixedClock
from tests.factories import MONDAY_7AM


@pytest_asyncio.fixture
async def engine(tmp_path):
    # File-backed so several sessions can share (and race on) the same rows.
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return FixedClock(MONDAY_7AM)
