"""Service test fixtures — in-memory storage, a live LedgerSession and an API client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - app.state.ledger_session is swapped per test (ASGITransport skips the lifespan)
    - db_manager patched so the readiness probe sees the test database

Design Decisions:
    - Real SqlSlotStorage / SqlPhotoStore over SQLite: persistence is asserted by
      reading the slot back, not by mocking writes
    - FailingPhotoStore (tests/fakes.py) only where a failing blob store is the scenario
"""

import pytest
from httpx import ASGITransport, AsyncClient

import equiptrack.infrastructure.database as db_module
from equiptrack.config import Settings
from equiptrack.infrastructure.database import DatabaseSessionManager
from equiptrack.infrastructure.photo_store import SqlPhotoStore
from equiptrack.infrastructure.slot_storage import SqlSlotStorage
from equiptrack.main import app
from equiptrack.services.ledger_session import LedgerSession


@pytest.fixture
def settings():
    return Settings(database_url="sqlite+aiosqlite:///:memory:", approval_delay_seconds=0)


@pytest.fixture
async def db(settings):
    manager = DatabaseSessionManager(settings.database_url)
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def slot_storage(db):
    return SqlSlotStorage(db)


@pytest.fixture
def photo_store(db):
    return SqlPhotoStore(db, timeout_seconds=5)


@pytest.fixture
async def session(slot_storage, photo_store, settings):
    ledger_session = LedgerSession(slot_storage, photo_store, settings)
    await ledger_session.init()
    yield ledger_session
    await ledger_session.teardown()


@pytest.fixture
async def client(db, session):
    """FastAPI test client bound to the test session and database."""
    original_manager = db_module.db_manager
    db_module.db_manager = db
    app.state.ledger_session = session

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.state.ledger_session = None
    db_module.db_manager = original_manager
