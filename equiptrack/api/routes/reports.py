"""Report Routes — read-side totals, range views, duplicate checks and search.

Invariants:
    - Read-only: nothing here dispatches or persists
    - Available in both access modes
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from equiptrack.api.dependencies import get_ledger_session, to_day_key
from equiptrack.core.domain_types import RangeScope
from equiptrack.core.ledger_snapshot import item_to_snapshot, record_to_snapshot
from equiptrack.schemas.ledger import TotalsResponse
from equiptrack.services.ledger_session import LedgerSession

router = APIRouter(prefix="/api/v1/ledger", tags=["reports"])


@router.get("/totals/{day}", response_model=TotalsResponse)
async def get_totals(day: date, session: LedgerSession = Depends(get_ledger_session)):
    """Footer totals: per category, the day, and the month through that day."""
    key = to_day_key(day)
    return TotalsResponse(
        day=key,
        categories={c.value: n for c, n in session.category_totals(key).items()},
        day_total=session.day_total(key),
        month_to_date_total=session.month_to_date_total(day),
    )


@router.get("/month-to-date/{day}")
async def get_month_to_date(day: date, session: LedgerSession = Depends(get_ledger_session)):
    return {"day": to_day_key(day), "total": session.month_to_date_total(day)}


@router.get("/range/{day}")
async def get_range(
    day: date,
    scope: RangeScope = Query(RangeScope.DAY),
    session: LedgerSession = Depends(get_ledger_session),
):
    """Reporting window: the day as stored, or the month's active items to date."""
    view = session.range_aggregate(day, scope)
    return {"label": view.label, "scope": view.scope.value, "record": record_to_snapshot(view.record)}


@router.get("/duplicates")
async def check_duplicate(
    value: str = Query(..., max_length=20),
    exclude_id: str | None = Query(None),
    session: LedgerSession = Depends(get_ledger_session),
):
    return {"value": value, "duplicate": session.is_duplicate(value, exclude_id)}


@router.get("/search")
async def search(
    term: str = Query(..., max_length=20),
    session: LedgerSession = Depends(get_ledger_session),
):
    """Items whose serial or contract contains term, newest day first."""
    return {
        "results": [
            {"day": hit.day, "category": hit.category.value, "item": item_to_snapshot(hit.item)}
            for hit in session.search(term)
        ],
    }
