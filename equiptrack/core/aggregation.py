"""Aggregation Engine — per-category, per-day and month-to-date totals.

Invariants:
    - All functions are PURE: no IO, never mutate the ledger
    - Only active items count toward any total
    - Quantity-sum variant: an active item contributes int(quantity), or 1 when
      quantity is blank or not a number; "0" contributes 0
    - category_total is invariant under reordering of items
    - month_to_date_total scans stored keys (O(days stored)); missing days add 0

Design Decisions:
    - Quantity parse reads a leading integer ("3x" -> 3) to match rows typed on
      the field app's numeric keypad
    - range_aggregate(MONTH) builds a synthetic record for reporting only; it may
      have empty categories and must never be dispatched back into the ledger
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from equiptrack.core.domain_types import (
    CATEGORIES, DayKey, EquipmentCategory, RangeScope, day_key, parse_day_key,
)
from equiptrack.core.equipment_item import EquipmentItem, is_item_active
from equiptrack.core.ledger import DailyRecord, create_blank_record, create_empty_record

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class RangeView:
    """Read-only reporting window over the ledger."""
    record: DailyRecord
    label: str
    scope: RangeScope


def item_units(item: EquipmentItem) -> int:
    """Units an active item contributes to totals."""
    match = _LEADING_INT.match(item.quantity or "")
    return int(match.group(1)) if match else 1


def category_total(items: Iterable[EquipmentItem]) -> int:
    return sum(item_units(item) for item in items if is_item_active(item))


def category_totals(record: Mapping[EquipmentCategory, Iterable[EquipmentItem]]) -> dict[EquipmentCategory, int]:
    """Footer view: one total per category, in display order."""
    return {category: category_total(record.get(category, ())) for category in CATEGORIES}


def day_total(record: Mapping[EquipmentCategory, Iterable[EquipmentItem]] | None) -> int:
    if not record:
        return 0
    return sum(category_total(record.get(category, ())) for category in CATEGORIES)


def month_to_date_total(ledger: Mapping[DayKey, DailyRecord], anchor: date) -> int:
    """Sum of day totals from the 1st of anchor's month through anchor."""
    total = 0
    for key, record in ledger.items():
        day = parse_day_key(key)
        if day is None:
            continue
        if day.year == anchor.year and day.month == anchor.month and day.day <= anchor.day:
            total += day_total(record)
    return total


def _month_label(anchor: date) -> str:
    return f"Month {anchor.month}/{anchor.year} (through day {anchor.day})"


def range_aggregate(
    ledger: Mapping[DayKey, DailyRecord], anchor: date, scope: RangeScope,
) -> RangeView:
    """Day scope: the stored record verbatim. Month scope: merged active items."""
    if scope == RangeScope.DAY:
        key = day_key(anchor)
        return RangeView(ledger.get(key) or create_blank_record(), key, scope)

    merged = {category: [] for category in CATEGORIES}
    for day_number in range(1, anchor.day + 1):
        record = ledger.get(day_key(anchor.replace(day=day_number)))
        if not record:
            continue
        for category in CATEGORIES:
            merged[category].extend(
                item for item in record.get(category, ()) if is_item_active(item)
            )
    view = create_empty_record()
    for category, items in merged.items():
        view[category] = tuple(items)
    return RangeView(view, _month_label(anchor), scope)
