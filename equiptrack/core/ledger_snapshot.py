"""Ledger Snapshot — serialization / deserialization for the persisted ledger.

Invariants:
    - ledger_to_snapshot produces a JSON-safe dict (no Enums, no tuples)
    - ledger_from_snapshot(ledger_to_snapshot(L)) == L for every valid ledger L
    - Wire field names match the records already stored by the field app:
      {"id", "qt", "contract", "serial", "photos"}
    - Unknown categories and unknown item fields are ignored (forward-compatible);
      missing categories are restored with a blank placeholder
    - Structurally wrong data raises MalformedSnapshotError; callers log and fall back
    - A single undecodable inline photo never fails the ledger: the entry is
      kept verbatim so nothing is lost on the next save

Design Decisions:
    - Legacy inline photos ("data:<mime>;base64,<payload>" entries in "photos") are
      decoded here and replaced with fresh photo keys; payload and original entry
      are returned alongside the ledger so the shell can write the blob, or put
      the entry back with restore_inline_photos when the write fails
    - Pure module: no IO, the shell decides where blobs and JSON go
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from equiptrack.core.domain_types import (
    CATEGORIES, DayKey, EquipmentCategory, ItemId, PhotoKey, parse_day_key,
)
from equiptrack.core.equipment_item import EquipmentItem, new_item_id, with_fields
from equiptrack.core.errors import MalformedSnapshotError
from equiptrack.core.ledger import DailyRecord, Ledger, normalize_record
from equiptrack.core.photo_keys import new_photo_key

logger = logging.getLogger(__name__)

_CATEGORY_BY_VALUE = {category.value: category for category in CATEGORIES}
_STRING_FIELDS = {"qt": "quantity", "contract": "contract_code", "serial": "serial_code"}
LEGACY_PHOTO_PREFIX = "data:"


@dataclass(frozen=True)
class LegacyPhoto:
    """An inline photo lifted out of the ledger, with the entry it came from."""
    blob: bytes
    source: str


@dataclass
class LoadedLedger:
    """A decoded ledger plus any legacy photo payloads lifted out of it."""
    ledger: Ledger
    legacy_photos: dict[PhotoKey, LegacyPhoto] = field(default_factory=dict)

    @property
    def had_legacy_photos(self) -> bool:
        return bool(self.legacy_photos)


# ─── Serialize ───────────────────────────────────────────────────

def item_to_snapshot(item: EquipmentItem) -> dict:
    return {
        "id": item.id,
        "qt": item.quantity,
        "contract": item.contract_code,
        "serial": item.serial_code,
        "photos": list(item.photo_refs),
    }


def record_to_snapshot(record: Mapping[EquipmentCategory, tuple[EquipmentItem, ...]]) -> dict:
    return {
        category.value: [item_to_snapshot(item) for item in record.get(category, ())]
        for category in CATEGORIES
    }


def ledger_to_snapshot(ledger: Mapping[DayKey, DailyRecord]) -> dict:
    """Serialize the ledger to a JSON-safe dict. Pure, no IO."""
    return {day: record_to_snapshot(record) for day, record in sorted(ledger.items())}


# ─── Deserialize ─────────────────────────────────────────────────

def is_legacy_photo(ref: str) -> bool:
    return ref.startswith(LEGACY_PHOTO_PREFIX)


def decode_legacy_photo(ref: str) -> bytes:
    """Decode a "data:<mime>;base64,<payload>" URL to raw bytes."""
    header, sep, payload = ref.partition(",")
    if not sep or not header.endswith(";base64"):
        raise MalformedSnapshotError("inline photo is not a base64 data URL", "photo")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedSnapshotError(f"inline photo payload: {e}", "photo")


def _expect(value: Any, kind: type, what: str) -> Any:
    if not isinstance(value, kind):
        raise MalformedSnapshotError(
            f"{what} must be {kind.__name__}, got {type(value).__name__}", "ledger",
        )
    return value


def _photo_ref(ref: str, item_id: str, legacy: dict[PhotoKey, LegacyPhoto]) -> PhotoKey:
    if not is_legacy_photo(ref):
        return PhotoKey(ref)
    try:
        blob = decode_legacy_photo(ref)
    except MalformedSnapshotError as e:
        logger.warning(
            f"Keeping undecodable inline photo as-is: {e.message}",
            extra={"item_id": item_id, "error_code": e.code},
        )
        return PhotoKey(ref)
    key = new_photo_key()
    legacy[key] = LegacyPhoto(blob, ref)
    return key


def _item_from_snapshot(data: Any, legacy: dict[PhotoKey, LegacyPhoto]) -> EquipmentItem:
    _expect(data, dict, "item")
    item_id = data.get("id") or new_item_id()
    _expect(item_id, str, "item id")
    fields: dict[str, Any] = {}
    for wire_name, attr in _STRING_FIELDS.items():
        value = data.get(wire_name)
        if value is None:
            value = ""
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        fields[attr] = _expect(value, str, f"item field '{wire_name}'")
    refs = tuple(
        _photo_ref(_expect(ref, str, "photo reference"), item_id, legacy)
        for ref in _expect(data.get("photos") or [], list, "item photos")
    )
    return EquipmentItem(id=ItemId(item_id), photo_refs=refs, **fields)


def _record_from_snapshot(data: Any, legacy: dict[PhotoKey, LegacyPhoto]) -> DailyRecord:
    _expect(data, dict, "daily record")
    record: DailyRecord = {}
    for name, items in data.items():
        category = _CATEGORY_BY_VALUE.get(name)
        if category is None:
            continue
        _expect(items, list, f"category '{name}'")
        record[category] = tuple(_item_from_snapshot(item, legacy) for item in items)
    return normalize_record(record)


def ledger_from_snapshot(data: Any) -> LoadedLedger:
    """Reconstruct a ledger from a snapshot dict. Pure, no IO.

    Raises MalformedSnapshotError on structurally invalid input.
    """
    if data is None:
        return LoadedLedger({})
    _expect(data, dict, "ledger")
    legacy: dict[PhotoKey, LegacyPhoto] = {}
    ledger: Ledger = {}
    for key, record in data.items():
        if not isinstance(key, str) or parse_day_key(key) is None:
            raise MalformedSnapshotError(f"invalid day key {key!r}", "ledger")
        ledger[DayKey(key)] = _record_from_snapshot(record, legacy)
    return LoadedLedger(ledger, legacy)


def restore_inline_photos(ledger: Ledger, sources: Mapping[PhotoKey, str]) -> Ledger:
    """Put original inline entries back in place of keys whose blob was never stored.

    Copy-on-write: only days holding one of the keys are rebuilt.
    """
    if not sources:
        return ledger
    restored: Ledger = dict(ledger)
    for day, record in ledger.items():
        if not _holds_any(record, sources):
            continue
        restored[day] = {
            category: tuple(_restore_item(item, sources) for item in items)
            for category, items in record.items()
        }
    return restored


def _holds_any(record: DailyRecord, sources: Mapping[PhotoKey, str]) -> bool:
    return any(
        ref in sources
        for items in record.values() for item in items for ref in item.photo_refs
    )


def _restore_item(item: EquipmentItem, sources: Mapping[PhotoKey, str]) -> EquipmentItem:
    if not any(ref in sources for ref in item.photo_refs):
        return item
    return with_fields(
        item, photo_refs=tuple(PhotoKey(sources.get(ref, ref)) for ref in item.photo_refs),
    )
