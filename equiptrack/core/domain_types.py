"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ItemId, DayKey, PhotoKey wrap str — never use bare str for identity in domain logic
    - EquipmentCategory is a closed set; every DailyRecord carries every member
    - DayKey format is YYYY-MM-DD (local calendar day)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (persisted slots are JSON)
    - Category values keep the labels stored by the field app ("BOX SOUND", ...)
"""

from datetime import date
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ItemId = NewType("ItemId", str)
DayKey = NewType("DayKey", str)            # "YYYY-MM-DD"
PhotoKey = NewType("PhotoKey", str)
NotificationId = NewType("NotificationId", str)


# ─── Limits ──────────────────────────────────────────────────────

HISTORY_LIMIT = 10
DUPLICATE_MIN_LENGTH = 3
SEARCH_MIN_LENGTH = 2

QUANTITY_MAX_LENGTH = 2         # 0-99
CONTRACT_CODE_MAX_LENGTH = 10
SERIAL_CODE_MAX_LENGTH = 20


# ─── Enums ───────────────────────────────────────────────────────

class EquipmentCategory(str, Enum):
    """Closed set of equipment categories. Declaration order is display order."""
    BOX = "BOX"
    BOX_SOUND = "BOX SOUND"
    REMOTE_CONTROL = "CONTROLE REMOTO"
    CAMERA = "CAMERA"
    CHIP = "CHIP"


CATEGORIES: tuple[EquipmentCategory, ...] = tuple(EquipmentCategory)


class RangeScope(str, Enum):
    """Reporting window for range_aggregate."""
    DAY = "day"
    MONTH = "month"


class AccessMode(str, Enum):
    """Sharing state — imported snapshots start read-only."""
    EDITABLE = "editable"
    READ_ONLY = "read_only"


class NotificationKind(str, Enum):
    INFO = "info"
    ALERT = "alert"
    REQUEST = "request"


class BoundAction(str, Enum):
    """Actions a notification can carry. Invoking one consumes the notification."""
    GRANT_EDIT_ACCESS = "grant_edit_access"


# ─── Day keys ────────────────────────────────────────────────────

def day_key(day: date) -> DayKey:
    """Format a calendar day as a ledger key."""
    return DayKey(day.isoformat())


def parse_day_key(key: str) -> date | None:
    """Parse a ledger key. Returns None for malformed keys."""
    try:
        return date.fromisoformat(key)
    except (TypeError, ValueError):
        return None
