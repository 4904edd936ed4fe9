"""Photo Attachments — add and remove item photos across ledger and photo store.

Invariants:
    - attach_photo writes the blob BEFORE touching the ledger; a failed write
      raises PhotoStoreError and leaves the ledger unchanged (no dangling key)
    - If the ledger update does not apply after the blob was written, the blob
      is deleted again
    - remove_photo drops exactly one key, keeps the order of the others, and the
      session deletes exactly that blob
    - Read-only sessions are gated before any blob is written
"""

import logging
from dataclasses import dataclass

from equiptrack.core.domain_types import DayKey, EquipmentCategory, PhotoKey
from equiptrack.core.enforce_access import check_editable
from equiptrack.core.equipment_item import EquipmentItem, with_fields
from equiptrack.core.errors import ErrorContext, PhotoStoreError, ResourceNotFoundError
from equiptrack.core.ledger_operations import UpdateItem
from equiptrack.core.photo_keys import new_photo_key
from equiptrack.services.ledger_session import DispatchOutcome, LedgerSession

logger = logging.getLogger(__name__)


@dataclass
class AttachOutcome:
    photo_key: PhotoKey | None
    dispatch: DispatchOutcome


def _item_or_404(
    session: LedgerSession, day: DayKey, category: EquipmentCategory, item_id: str,
) -> EquipmentItem:
    record = session.record_for(day) or {}
    for item in record.get(category, ()):
        if item.id == item_id:
            return item
    raise ResourceNotFoundError(
        "Item", item_id, ErrorContext(day=day, category=category.value, item_id=item_id),
    )


async def attach_photo(
    session: LedgerSession,
    day: DayKey,
    category: EquipmentCategory,
    item_id: str,
    blob: bytes,
    scanned_code: str | None = None,
) -> AttachOutcome:
    """Store a captured photo and append its key to the item.

    scanned_code, when given, replaces the item's serial (camera + scanner capture).
    """
    blocked = check_editable(session.access)
    if blocked is not None:
        return AttachOutcome(None, DispatchOutcome("UpdateItem", applied=False, blocked=blocked))
    _item_or_404(session, day, category, item_id)

    key = new_photo_key()
    await session.photo_store.put(key, blob)

    # re-read: the ledger may have moved while the blob was being written
    try:
        item = _item_or_404(session, day, category, item_id)
    except ResourceNotFoundError:
        await _discard_blob(session, key)
        raise
    changes: dict = {"photo_refs": item.photo_refs + (key,)}
    if scanned_code:
        changes["serial_code"] = scanned_code
    outcome = await session.dispatch(UpdateItem(day, category, with_fields(item, **changes)))
    if not outcome.applied:
        await _discard_blob(session, key)
        return AttachOutcome(None, outcome)
    logger.info(
        "Photo attached",
        extra={"day": day, "category": category.value, "item_id": item_id, "photo_key": key},
    )
    return AttachOutcome(key, outcome)


async def remove_photo(
    session: LedgerSession,
    day: DayKey,
    category: EquipmentCategory,
    item_id: str,
    key: str,
) -> DispatchOutcome:
    item = _item_or_404(session, day, category, item_id)
    if key not in item.photo_refs:
        raise ResourceNotFoundError(
            "Photo", key, ErrorContext(day=day, item_id=item_id, photo_key=key),
        )
    remaining = tuple(ref for ref in item.photo_refs if ref != key)
    return await session.dispatch(
        UpdateItem(day, category, with_fields(item, photo_refs=remaining)),
    )


async def _discard_blob(session: LedgerSession, key: PhotoKey) -> None:
    try:
        await session.photo_store.delete(key)
    except PhotoStoreError as e:
        logger.warning(
            f"Unreferenced photo blob left behind: {e.message}",
            extra={"photo_key": key, "error_code": e.code},
        )
