"""Storage Slot ORM — one serialized record per fixed slot name.

Invariants:
    - name is the primary key (one row per slot: ledger, preferences)
    - payload is the JSON text exactly as serialized by the shell

Design Decisions:
    - Text column over JSON column: the slot layer is format-agnostic
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from equiptrack.db.base import Base


class StorageSlot(Base):
    __tablename__ = "storage_slots"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
