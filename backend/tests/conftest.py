"""Shared fixtures.

Service tests run against a fresh in-memory SQLite database per test, seeded
with the reference catalog. API tests use the real app wired to a temporary
SQLite file; ``DATABASE_URL`` is set here before ``fitplan`` is imported.
"""

import os
import tempfile
from pathlib import Path

os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(tempfile.mkdtemp()) / 'fitplan-test.db'}",
)

from collections.abc import AsyncIterator  # noqa: E402

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

import fitplan.db_models  # noqa: E402, F401
from fitplan.database import create_tables, make_engine  # noqa: E402
from fitplan.models import ProfileInput  # noqa: E402
from fitplan.profile_service import upsert_profile  # noqa: E402
from fitplan.seed import seed_reference_data  # noqa: E402


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = make_engine("sqlite+aiosqlite://")
    await create_tables(engine)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as db:
        await seed_reference_data(db)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def profile_input(**overrides: object) -> ProfileInput:
    """Metric male profile, 80 kg / 180 cm / 25 y, 5 training days, maintain."""
    data: dict[str, object] = {
        "unit_system": "metric",
        "sex": "male",
        "age": 25,
        "weight": 80,
        "height_cm": 180,
        "training_days_per_week": 5,
        "goal": "maintain",
    }
    data.update(overrides)
    return ProfileInput(**data)


@pytest_asyncio.fixture
async def user(db: AsyncSession) -> str:
    """A user with a default profile on the 5-day split."""
    await upsert_profile(db, "user-1", profile_input())
    return "user-1"
