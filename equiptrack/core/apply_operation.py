"""Mutation Engine — pure transition function over the ledger.

Invariants:
    - apply_operation is PURE: no IO, no async, never mutates its input ledger
    - Copy-on-write: only the touched day dict and category tuple are rebuilt,
      untouched days are shared with the previous snapshot
    - EnsureDay on a present day returns the input ledger object itself
    - Update/Delete on a missing day is a no-op returning the input ledger
    - DeleteItems never leaves a category empty (blank placeholder re-inserted)
    - Photo keys that drop out of the ledger are reported, never deleted here;
      the shell owns blob deletion

Design Decisions:
    - MutationResult carries orphaned keys instead of calling the photo store:
      keeps the engine testable without mocks and the shell in charge of IO
    - match/case with assert_never: adding a seventh variant fails type-checking
"""

from dataclasses import dataclass, field
from typing import assert_never

from equiptrack.core.domain_types import DayKey, EquipmentCategory, PhotoKey
from equiptrack.core.equipment_item import EquipmentItem, blank_item
from equiptrack.core.ledger import (
    DailyRecord, Ledger, all_photo_refs, create_blank_record, normalize_record,
)
from equiptrack.core.ledger_operations import (
    AddItem, ClearAll, DeleteItems, EnsureDay, LedgerOperation, ReplaceAll, UpdateItem,
)


@dataclass(frozen=True)
class MutationResult:
    ledger: Ledger
    orphaned_photo_refs: tuple[PhotoKey, ...] = field(default_factory=tuple)
    changed: bool = True


def _unchanged(ledger: Ledger) -> MutationResult:
    return MutationResult(ledger=ledger, changed=False)


def _with_category(
    ledger: Ledger, day: DayKey, record: DailyRecord,
    category: EquipmentCategory, items: tuple[EquipmentItem, ...],
) -> Ledger:
    """New ledger sharing every day except `day`, whose record gets new `items`."""
    new_record = dict(record)
    new_record[category] = items
    new_ledger = dict(ledger)
    new_ledger[day] = new_record
    return new_ledger


def _add_item(ledger: Ledger, op: AddItem) -> MutationResult:
    record = ledger.get(op.day) or create_blank_record()
    items = record.get(op.category, ()) + (blank_item(),)
    return MutationResult(_with_category(ledger, op.day, record, op.category, items))


def _update_item(ledger: Ledger, op: UpdateItem) -> MutationResult:
    record = ledger.get(op.day)
    if record is None:
        return _unchanged(ledger)
    items = list(record.get(op.category, ()))
    orphaned: tuple[PhotoKey, ...] = ()
    for index, existing in enumerate(items):
        if existing.id == op.item.id:
            kept = set(op.item.photo_refs)
            orphaned = tuple(ref for ref in existing.photo_refs if ref not in kept)
            items[index] = op.item
            break
    else:
        items.append(op.item)
    return MutationResult(
        _with_category(ledger, op.day, record, op.category, tuple(items)),
        orphaned,
    )


def _delete_items(ledger: Ledger, op: DeleteItems) -> MutationResult:
    record = ledger.get(op.day)
    if record is None:
        return _unchanged(ledger)
    current = record.get(op.category, ())
    removed = [item for item in current if item.id in op.item_ids]
    if not removed and current:
        return _unchanged(ledger)
    remaining = tuple(item for item in current if item.id not in op.item_ids)
    if not remaining:
        remaining = (blank_item(),)
    orphaned = tuple(ref for item in removed for ref in item.photo_refs)
    return MutationResult(
        _with_category(ledger, op.day, record, op.category, remaining),
        orphaned,
    )


def apply_operation(ledger: Ledger, op: LedgerOperation) -> MutationResult:
    """Apply one operation and return the next ledger. Pure, no IO."""
    match op:
        case ReplaceAll():
            return MutationResult(op.ledger)
        case EnsureDay():
            if op.day in ledger:
                return _unchanged(ledger)
            new_ledger = dict(ledger)
            new_ledger[op.day] = normalize_record(op.blank_record)
            return MutationResult(new_ledger)
        case AddItem():
            return _add_item(ledger, op)
        case UpdateItem():
            return _update_item(ledger, op)
        case DeleteItems():
            return _delete_items(ledger, op)
        case ClearAll():
            return MutationResult({}, tuple(all_photo_refs(ledger)))
        case _:
            assert_never(op)
