"""Ledger Operations — closed tagged variant of the six ledger transitions.

Invariants:
    - LedgerOperation is exactly these six variants; apply_operation matches exhaustively
    - Only user edits (AddItem, UpdateItem, DeleteItems, ClearAll) are history-tracked
    - ReplaceAll and EnsureDay are structural loads, never recorded in the undo log

Design Decisions:
    - Frozen dataclasses over dicts with a "type" key: the type checker enforces
      payload shape and match/case stays exhaustive
"""

from dataclasses import dataclass, field
from typing import Union

from equiptrack.core.domain_types import DayKey, EquipmentCategory, ItemId
from equiptrack.core.equipment_item import EquipmentItem
from equiptrack.core.ledger import DailyRecord, Ledger


@dataclass(frozen=True)
class ReplaceAll:
    """Swap in a whole ledger (undo restore, persisted load, shared import)."""
    ledger: Ledger


@dataclass(frozen=True)
class EnsureDay:
    day: DayKey
    blank_record: DailyRecord


@dataclass(frozen=True)
class AddItem:
    day: DayKey
    category: EquipmentCategory


@dataclass(frozen=True)
class UpdateItem:
    """Upsert by item id within one day/category."""
    day: DayKey
    category: EquipmentCategory
    item: EquipmentItem


@dataclass(frozen=True)
class DeleteItems:
    day: DayKey
    category: EquipmentCategory
    item_ids: frozenset[ItemId] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ClearAll:
    pass


LedgerOperation = Union[ReplaceAll, EnsureDay, AddItem, UpdateItem, DeleteItems, ClearAll]

HISTORY_TRACKED = (AddItem, UpdateItem, DeleteItems, ClearAll)


def is_history_tracked(op: LedgerOperation) -> bool:
    return isinstance(op, HISTORY_TRACKED)


def operation_name(op: LedgerOperation) -> str:
    """Stable name for logs and API responses."""
    return type(op).__name__
