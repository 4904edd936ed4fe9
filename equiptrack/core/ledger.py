"""Ledger Store structure — day-keyed records of per-category item lists.

Invariants:
    - Every DailyRecord has every EquipmentCategory key
    - Every category tuple holds at least one item (blank placeholder if nothing else)
    - Ledgers and records are never mutated in place: transitions build new
      containers along the touched path and share everything else
    - A day's record is created at most once (ensure semantics)

Design Decisions:
    - Plain dicts of tuples over a custom persistent map: JSON-shaped, cheap to
      copy one level, and items are frozen so sharing is safe
    - Holding a ledger reference is equivalent to holding a snapshot
"""

from typing import Iterator, Mapping

from equiptrack.core.domain_types import CATEGORIES, DayKey, EquipmentCategory
from equiptrack.core.equipment_item import EquipmentItem, blank_item

DailyRecord = dict[EquipmentCategory, tuple[EquipmentItem, ...]]
Ledger = dict[DayKey, DailyRecord]


def create_blank_record() -> DailyRecord:
    """One fresh placeholder item per category."""
    return {category: (blank_item(),) for category in CATEGORIES}


def create_empty_record() -> DailyRecord:
    """Every category present but empty. Reporting only, never stored."""
    return {category: () for category in CATEGORIES}


def normalize_record(record: Mapping[EquipmentCategory, tuple[EquipmentItem, ...]]) -> DailyRecord:
    """Restore the record invariants: all categories present, none empty."""
    normalized: DailyRecord = {}
    for category in CATEGORIES:
        items = tuple(record.get(category, ()))
        normalized[category] = items or (blank_item(),)
    return normalized


def iter_items(ledger: Mapping[DayKey, DailyRecord]) -> Iterator[tuple[DayKey, EquipmentCategory, EquipmentItem]]:
    """Every (day, category, item) in the ledger, days in key order."""
    for day in sorted(ledger):
        record = ledger[day]
        for category in CATEGORIES:
            for item in record.get(category, ()):
                yield day, category, item


def find_item(
    ledger: Mapping[DayKey, DailyRecord], day: DayKey, item_id: str,
) -> tuple[EquipmentCategory, EquipmentItem] | None:
    """Locate an item by id within one day."""
    record = ledger.get(day)
    if record is None:
        return None
    for category in CATEGORIES:
        for item in record.get(category, ()):
            if item.id == item_id:
                return category, item
    return None


def all_photo_refs(ledger: Mapping[DayKey, DailyRecord]) -> list[str]:
    return [ref for _, _, item in iter_items(ledger) for ref in item.photo_refs]
