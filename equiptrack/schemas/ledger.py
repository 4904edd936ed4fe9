"""Ledger Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - ItemUpdate enforces the field caps of the entry form (qt 2, contract 10, serial 20)
    - qt is digits only when present
    - Responses reuse the persisted wire shape ({"id", "qt", "contract", "serial", "photos"})

Design Decisions:
    - photos is optional on ItemUpdate: photo keys are managed by the photo routes,
      a form save that omits them keeps the item's current photos; a supplied
      list may only reorder or drop keys already attached (checked_photo_refs)
"""

from pydantic import BaseModel, Field, field_validator

from equiptrack.core.access_state import Notification
from equiptrack.core.domain_types import (
    CONTRACT_CODE_MAX_LENGTH, QUANTITY_MAX_LENGTH, SERIAL_CODE_MAX_LENGTH,
)


class ItemUpdate(BaseModel):
    """Form save for one row."""
    qt: str = Field("", max_length=QUANTITY_MAX_LENGTH)
    contract: str = Field("", max_length=CONTRACT_CODE_MAX_LENGTH)
    serial: str = Field("", max_length=SERIAL_CODE_MAX_LENGTH)
    photos: list[str] | None = None

    @field_validator("qt")
    @classmethod
    def qt_is_numeric(cls, v: str) -> str:
        v = v.strip()
        if v and not v.isdigit():
            raise ValueError("qt must be a number between 0 and 99")
        return v


class DeleteItemsRequest(BaseModel):
    item_ids: list[str] = Field(min_length=1)


class ShareImportRequest(BaseModel):
    token: str = Field(min_length=1, max_length=5_000_000)


class PreferencesUpdate(BaseModel):
    autosave: bool | None = None
    display_name: str | None = Field(None, max_length=80)


class ItemResponse(BaseModel):
    id: str
    qt: str
    contract: str
    serial: str
    photos: list[str]


class TotalsResponse(BaseModel):
    day: str
    categories: dict[str, int]
    day_total: int
    month_to_date_total: int


def notification_to_dict(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "kind": notification.kind.value,
        "message": notification.message,
        "timestamp": notification.timestamp.isoformat(),
        "read": notification.read,
        "bound_action": notification.bound_action.value if notification.bound_action else None,
    }
