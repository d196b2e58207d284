"""
Pytest Configuration and Fixtures.

Every test gets its own SQLite database file (aiosqlite) with all tables
created, plus an application wired to it.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from src.core.config import Settings
from src.core.database import Database
from src.main import create_application
from src.modules.ingestion.service import IngestionService


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'telemetry.db'}",
        environment="testing",
        sentry_dsn="",
        cors_origins="",
        vehicle_meter_map={},
    )

@pytest.fixture
async def database(settings):
    """Database with all tables created."""
    db = Database(settings)
    await db.init_models()
    yield db
    await db.dispose()

@pytest.fixture
async def session(database):
    """A session independent of the one used by request handlers."""
    async with database.session_maker() as s:
        yield s

@pytest.fixture
def ingestion(session) -> IngestionService:
    return IngestionService(session)

@pytest.fixture
def app(settings, database):
    return create_application(settings, database=database)

@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

