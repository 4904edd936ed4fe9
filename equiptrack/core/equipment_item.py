"""Equipment Item — the per-row record and its activity predicate.

Invariants:
    - id is generated once at creation and never reused or changed
    - Items are frozen; edits produce a new item via dataclasses.replace
    - An item is active iff contract, serial or quantity is non-blank after
      trimming, or it has at least one photo reference
    - A row edit may reorder or drop its photo keys, never introduce new ones:
      photos enter a row only through the attachment flow

Design Decisions:
    - quantity counts toward activity (the quantity-sum ledger variant, see aggregation.py)
    - photo_refs is a tuple so items can be shared between ledger snapshots
"""

import random
import string
import time
from dataclasses import dataclass, replace

from equiptrack.core.domain_types import ItemId, PhotoKey
from equiptrack.core.errors import ItemValidationError

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def random_suffix(length: int = 11) -> str:
    return "".join(random.choices(_BASE36, k=length))


def new_item_id() -> ItemId:
    """Millisecond timestamp in base 36 followed by a random suffix."""
    return ItemId(to_base36(time.time_ns() // 1_000_000) + random_suffix())


@dataclass(frozen=True)
class EquipmentItem:
    id: ItemId
    quantity: str = ""
    contract_code: str = ""
    serial_code: str = ""
    photo_refs: tuple[PhotoKey, ...] = ()


def blank_item() -> EquipmentItem:
    """Fresh placeholder row with a new id."""
    return EquipmentItem(id=new_item_id())


def with_fields(item: EquipmentItem, **changes) -> EquipmentItem:
    """Copy of item with changes applied. The id cannot be changed."""
    if "id" in changes and changes["id"] != item.id:
        raise ValueError("EquipmentItem.id is immutable")
    if "photo_refs" in changes:
        changes["photo_refs"] = tuple(changes["photo_refs"])
    return replace(item, **changes)


def is_item_active(item: EquipmentItem) -> bool:
    return (
        bool(item.quantity and item.quantity.strip())
        or bool(item.contract_code and item.contract_code.strip())
        or bool(item.serial_code and item.serial_code.strip())
        or len(item.photo_refs) > 0
    )


def checked_photo_refs(
    current: tuple[PhotoKey, ...], proposed: list[str],
) -> tuple[PhotoKey, ...]:
    """Validate a client-supplied photo list against the row's stored keys.

    Raises ItemValidationError for unknown or repeated keys.
    """
    known = set(current)
    seen: set[str] = set()
    for ref in proposed:
        if ref not in known:
            raise ItemValidationError(f"Photo '{ref}' is not attached to this item", "photos")
        if ref in seen:
            raise ItemValidationError(f"Photo '{ref}' is listed twice", "photos")
        seen.add(ref)
    return tuple(PhotoKey(ref) for ref in proposed)
