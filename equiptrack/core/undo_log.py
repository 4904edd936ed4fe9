"""Undo Log — bounded most-recent-first stack of prior ledger snapshots.

Invariants:
    - Holds at most `limit` snapshots; pushing past the limit evicts the oldest
    - pop() returns the most recent snapshot, or None when empty
    - Snapshots are ledger references; ledgers are never mutated in place, so a
      retained reference cannot be changed by later edits

Design Decisions:
    - No deep copy on push: copy-on-write transitions in apply_operation make
      the previous ledger an independent snapshot already
    - Pure dataclass, no IO — the session decides when to push and restore
"""

from dataclasses import dataclass, field

from equiptrack.core.domain_types import HISTORY_LIMIT
from equiptrack.core.ledger import Ledger


@dataclass
class UndoLog:
    """Per-session undo history — pure dataclass, no IO."""

    limit: int = HISTORY_LIMIT
    entries: list[Ledger] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("UndoLog limit must be at least 1")

    @property
    def depth(self) -> int:
        return len(self.entries)

    @property
    def can_undo(self) -> bool:
        return len(self.entries) > 0

    def push(self, ledger: Ledger) -> None:
        self.entries.insert(0, ledger)
        del self.entries[self.limit:]

    def pop(self) -> Ledger | None:
        if not self.entries:
            return None
        return self.entries.pop(0)

    def clear(self) -> None:
        self.entries.clear()
