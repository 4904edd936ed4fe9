"""Duplicate Detector — flags contract/serial identifiers reused anywhere in the ledger.

Invariants:
    - Values shorter than the minimum length are never duplicates
    - Comparison is exact (case-sensitive, untrimmed) against contract and serial
    - The item being edited (exclude_id) never matches itself
    - Full scan, O(total items); no index, so results always match the ledger
"""

from typing import Mapping

from equiptrack.core.domain_types import DUPLICATE_MIN_LENGTH, DayKey
from equiptrack.core.equipment_item import EquipmentItem
from equiptrack.core.ledger import DailyRecord, iter_items


def is_duplicate(
    ledger: Mapping[DayKey, DailyRecord],
    value: str,
    exclude_id: str | None,
    min_length: int = DUPLICATE_MIN_LENGTH,
) -> bool:
    if not value or len(value) < min_length:
        return False
    for _, _, item in iter_items(ledger):
        if item.id == exclude_id:
            continue
        if item.contract_code == value or item.serial_code == value:
            return True
    return False


def duplicate_fields(
    ledger: Mapping[DayKey, DailyRecord],
    item: EquipmentItem,
    min_length: int = DUPLICATE_MIN_LENGTH,
) -> set[str]:
    """Which of the item's identifiers ("contract", "serial") are reused elsewhere."""
    flagged = set()
    if is_duplicate(ledger, item.contract_code, item.id, min_length):
        flagged.add("contract")
    if is_duplicate(ledger, item.serial_code, item.id, min_length):
        flagged.add("serial")
    return flagged
