import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.dependencies import get_bundled_rule_set
from app.domain.bookings.db_models import Booking
from app.domain.cleaners.db_models import Cleaner
from app.infra.db import Base, get_db_session
from app.main import app
from app.settings import settings


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def test_engine():
    db_path = Path("test.db")
    if db_path.exists():
        db_path.unlink()
    engine = create_async_engine(
        "sqlite+aiosqlite:///./test.db",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=StaticPool,
    )

    async def init_models() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture(scope="session")
def async_session_maker(test_engine):
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture(autouse=True)
def restore_settings():
    original_testing = settings.testing
    original_default_rate = settings.default_cleaner_hourly_rate
    original_rules_path = settings.pricing_rules_path
    settings.testing = True
    yield
    settings.testing = original_testing
    settings.default_cleaner_hourly_rate = original_default_rate
    settings.pricing_rules_path = original_rules_path
    get_bundled_rule_set.cache_clear()


@pytest.fixture(autouse=True)
def clean_database(test_engine):
    async def truncate_tables() -> None:
        async with test_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                await conn.execute(table.delete())

    asyncio.run(truncate_tables())
    yield


@pytest.fixture()
def client(async_session_maker):
    async def override_db_session():
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    original_factory = getattr(app.state, "db_session_factory", None)
    app.state.db_session_factory = async_session_maker
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.db_session_factory = original_factory


@pytest.fixture()
def client_no_raise(async_session_maker):
    """Test client that returns HTTP responses instead of raising server exceptions."""

    async def override_db_session():
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    original_factory = getattr(app.state, "db_session_factory", None)
    app.state.db_session_factory = async_session_maker
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.db_session_factory = original_factory


@pytest.fixture()
def seed_booking(async_session_maker):
    """Async helper inserting cleaners and a booking; returns ``(booking_id, cleaner_ids)``."""

    async def _seed(
        *,
        total_cost: float = 200.0,
        total_hours: float | None = 10.0,
        cleaning_time: float | None = None,
        cleaners: int = 3,
        **booking_fields,
    ) -> tuple[int, list[int]]:
        async with async_session_maker() as session:
            rows = [Cleaner(full_name=f"Cleaner {index + 1}") for index in range(cleaners)]
            session.add_all(rows)
            await session.flush()
            booking = Booking(
                total_cost=total_cost,
                total_hours=total_hours,
                cleaning_time=cleaning_time,
                **booking_fields,
            )
            session.add(booking)
            await session.commit()
            return booking.booking_id, [row.cleaner_id for row in rows]

    return _seed
