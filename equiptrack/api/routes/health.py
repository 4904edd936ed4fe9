"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if local storage is unreachable or the
      ledger session has not been initialized (readiness)
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

import equiptrack.infrastructure.database as db_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "equiptrack-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — storage connectivity and session presence."""
    manager = db_module.db_manager
    db_ok = await manager.health_check() if manager else False
    session_ok = getattr(request.app.state, "ledger_session", None) is not None
    if not (db_ok and session_ok):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "storage_unavailable" if not db_ok else "session_not_initialized",
            },
        )
    return {"status": "ready", "checks": {"storage": "healthy", "session": "initialized"}}
