"""
Shared fixtures.

Each test gets its own SQLite file so that engines created in different event
loops (pytest-asyncio for service tests, the TestClient portal for API tests)
never share a connection.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, pool
from sqlalchemy.ext.asyncio import create_async_engine

from inspectflow.core.deps import get_inspection_service
from inspectflow.db import Base, make_session_factory
from inspectflow.db.seed import seed_all
from inspectflow.schemas.gauges import GaugeRecord
from inspectflow.services.inspection import InspectionService

# Early morning UTC keeps the seeded orders inside one local day in any timezone.
NOW = datetime(2026, 3, 10, 6, 30, tzinfo=timezone.utc)


def make_gauge(gauge_id="g1", expires_in_days=30.0, is_broken=False, now=NOW, **extra):
    """Gauge whose calibration expires `expires_in_days` after `now`."""
    expires = now + timedelta(days=expires_in_days)
    return GaugeRecord(
        id=gauge_id,
        name=extra.pop("name", f"Gauge {gauge_id}"),
        type=extra.pop("type", "Thread Plug"),
        location=extra.pop("location", "Bench A"),
        last_calibrated=expires - timedelta(days=90),
        calibration_interval_days=90,
        expires_at=expires,
        is_broken=is_broken,
    )


def _engine(url):
    return create_async_engine(url, poolclass=pool.NullPool)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def database_url(tmp_path):
    path = tmp_path / "inspectflow.db"
    # Plain sqlite driver: schema setup must not touch any event loop.
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def seeded_database_url(database_url):
    # Only used by synchronous API tests, so no event loop is running here.
    async def seed():
        engine = _engine(database_url)
        async with make_session_factory(engine)() as session:
            await seed_all(session, now=NOW)
        await engine.dispose()

    asyncio.run(seed())
    return database_url


@pytest.fixture
async def engine(database_url):
    engine = _engine(database_url)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def service(session):
    return InspectionService(session, clock=lambda: NOW)


def _client_for(url):
    from inspectflow.api.main import app

    async def override_service():
        engine = _engine(url)
        try:
            async with make_session_factory(engine)() as session:
                yield InspectionService(session, clock=lambda: NOW)
        finally:
            await engine.dispose()

    app.dependency_overrides[get_inspection_service] = override_service
    return app


@pytest.fixture
def client(database_url):
    app = _client_for(database_url)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_client(seeded_database_url):
    app = _client_for(seeded_database_url)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def inspector():
    return {"X-Actor-Role": "INSPECTOR"}


@pytest.fixture
def operator():
    return {"X-Actor-Role": "OPERATOR"}
