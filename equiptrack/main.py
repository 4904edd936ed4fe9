"""EquipTrack API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map EquipTrackError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Storage and the single LedgerSession are created on startup and torn
      down (flushed) on shutdown via the lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - One LedgerSession per process on app.state: single local writer
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from equiptrack.api.error_handlers import register_error_handlers
from equiptrack.api.routes import health, ledger, photos, reports, sharing
from equiptrack.config import get_settings
from equiptrack.infrastructure.database import init_db
from equiptrack.infrastructure.observability import setup_logging
from equiptrack.infrastructure.photo_store import SqlPhotoStore
from equiptrack.infrastructure.slot_storage import SqlSlotStorage
from equiptrack.services.ledger_session import LedgerSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(settings.database_url)
    await db.create_tables()
    session = LedgerSession(
        storage=SqlSlotStorage(db),
        photo_store=SqlPhotoStore(db, settings.photo_store_timeout_seconds),
        settings=settings,
    )
    await session.init()
    app.state.ledger_session = session
    logger.info("EquipTrack API started")
    yield
    logger.info("EquipTrack API shutting down")
    await session.teardown()
    app.state.ledger_session = None
    await db.dispose()


app = FastAPI(
    title="EquipTrack API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(ledger.router)
app.include_router(reports.router)
app.include_router(photos.router)
app.include_router(sharing.router)

register_error_handlers(app)
