"""Ledger Routes — day views and item edits dispatched into the LedgerSession.

Invariants:
    - Every edit goes through LedgerSession.dispatch (gate, undo log, autosave)
    - Viewing a day ensures its record exists (lazy, never overwrites)
    - Read-only sessions get 403 with an offer to request edit access

Design Decisions:
    - Day in the path as an ISO date: FastAPI validates it, bad dates become 400
    - Category in the path by its stored label ("BOX SOUND" is URL-encoded)
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, status

from equiptrack.api.dependencies import get_ledger_session, raise_if_blocked, to_day_key
from equiptrack.core.domain_types import EquipmentCategory, ItemId
from equiptrack.core.equipment_item import EquipmentItem, checked_photo_refs
from equiptrack.core.errors import (
    ErrorContext, ItemValidationError, ReadOnlySessionError, ResourceNotFoundError,
)
from equiptrack.core.ledger import find_item
from equiptrack.core.ledger_operations import AddItem, ClearAll, DeleteItems, UpdateItem
from equiptrack.core.ledger_snapshot import item_to_snapshot, ledger_to_snapshot, record_to_snapshot
from equiptrack.schemas.ledger import DeleteItemsRequest, ItemResponse, ItemUpdate
from equiptrack.services.ledger_session import LedgerSession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/ledger", tags=["ledger"])


@router.get("")
async def get_ledger(session: LedgerSession = Depends(get_ledger_session)):
    """Full ledger plus session state."""
    return {
        "ledger": ledger_to_snapshot(session.ledger),
        "access_mode": session.access.mode.value,
        "can_undo": session.can_undo,
    }


@router.get("/days/{day}")
async def get_day(day: date, session: LedgerSession = Depends(get_ledger_session)):
    """View a day, creating its blank record on first view."""
    key = to_day_key(day)
    record = await session.ensure_day(key)
    return {"day": key, "record": record_to_snapshot(record)}


@router.post("/days/{day}/{category}/items", status_code=status.HTTP_201_CREATED)
async def add_item(
    day: date, category: EquipmentCategory,
    session: LedgerSession = Depends(get_ledger_session),
):
    key = to_day_key(day)
    outcome = raise_if_blocked(await session.dispatch(AddItem(key, category)))
    items = session.ledger[key][category]
    return {**outcome.to_dict(), "item": item_to_snapshot(items[-1])}


@router.put("/days/{day}/{category}/items/{item_id}", response_model=ItemResponse)
async def update_item(
    day: date, category: EquipmentCategory, item_id: str, body: ItemUpdate,
    session: LedgerSession = Depends(get_ledger_session),
):
    """Upsert a row. Omitted photos keep the row's current photo keys.

    A supplied photo list may only reorder or drop keys already on the row.
    """
    key = to_day_key(day)
    if session.record_for(key) is None:
        raise ResourceNotFoundError("Day", key, ErrorContext(day=key))
    found = find_item(session.ledger, key, item_id)
    current = found[1].photo_refs if found else ()
    if body.photos is None:
        photos = current
    else:
        try:
            photos = checked_photo_refs(current, body.photos)
        except ItemValidationError as e:
            e.context = ErrorContext(day=key, category=category.value, item_id=item_id)
            raise
    item = EquipmentItem(
        id=ItemId(item_id), quantity=body.qt, contract_code=body.contract,
        serial_code=body.serial, photo_refs=photos,
    )
    raise_if_blocked(await session.dispatch(UpdateItem(key, category, item)))
    return item_to_snapshot(item)


@router.post("/days/{day}/{category}/items/delete")
async def delete_items(
    day: date, category: EquipmentCategory, body: DeleteItemsRequest,
    session: LedgerSession = Depends(get_ledger_session),
):
    key = to_day_key(day)
    outcome = raise_if_blocked(
        await session.dispatch(DeleteItems(key, category, frozenset(body.item_ids))),
    )
    record = session.record_for(key)
    return {
        **outcome.to_dict(),
        "items": [item_to_snapshot(i) for i in record[category]] if record else [],
    }


@router.delete("")
async def clear_ledger(session: LedgerSession = Depends(get_ledger_session)):
    """Erase every day. Undoable."""
    outcome = raise_if_blocked(await session.dispatch(ClearAll()))
    logger.info("Ledger cleared")
    return outcome.to_dict()


@router.post("/undo")
async def undo(session: LedgerSession = Depends(get_ledger_session)):
    result = await session.undo()
    if result.blocked is not None:
        raise ReadOnlySessionError(result.blocked)
    return {
        "restored": result.restored,
        "message": result.message,
        "remaining": result.remaining,
    }
