"""API Dependencies — access to the process's LedgerSession.

Invariants:
    - The session lives on app.state, created and torn down by the lifespan
    - Routes never construct sessions themselves

Design Decisions:
    - app.state over a module-level global: tests swap it per app instance
"""

from datetime import date

from fastapi import Request

from equiptrack.core.domain_types import DayKey, day_key
from equiptrack.core.errors import ReadOnlySessionError
from equiptrack.services.ledger_session import DispatchOutcome, LedgerSession


def get_ledger_session(request: Request) -> LedgerSession:
    session = getattr(request.app.state, "ledger_session", None)
    if session is None:
        raise RuntimeError("Ledger session not initialized")
    return session


def to_day_key(day: date) -> DayKey:
    return day_key(day)


def raise_if_blocked(outcome: DispatchOutcome) -> DispatchOutcome:
    """Read-only interception surfaces as 403 with the access-request offer."""
    if outcome.blocked is not None:
        raise ReadOnlySessionError(outcome.blocked)
    return outcome
