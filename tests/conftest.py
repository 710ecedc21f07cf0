"""Pytest configuration and fixtures for transitops tests.

Database fixtures run against a per-test in-memory SQLite database through
aiosqlite. ``StaticPool`` keeps every session on the same connection so the
schema created by the fixture is visible to all of them.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from transitops.config import reset_config
from transitops.db.connection import build_engine
from transitops.db.models import Base
from transitops.installations.aggregate import InstallationAggregate


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    reset_config()
    yield
    reset_config()


@pytest_asyncio.fixture()
async def engine():
    """Create in-memory database for testing."""
    engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory) -> AsyncSession:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def aggregate(session_factory) -> InstallationAggregate:
    return InstallationAggregate(session_factory)


@pytest.fixture
def fake() -> Faker:
    """Seeded Faker so generated values are reproducible."""
    generator = Faker("es_MX")
    generator.seed_instance(1234)
    return generator


@pytest.fixture
def terminal_schemas() -> list[dict]:
    return [
        {"name": "capacity", "type": "number", "required": True},
        {"name": "platforms", "type": "number", "required": True},
        {
            "name": "services",
            "type": "enum",
            "options": {"enumValues": ["Cafetería", "Baños", "WiFi"]},
            "required": False,
        },
    ]
