"""Photo Blob ORM — photo payloads keyed by client-generated photo keys.

Invariants:
    - key is the primary key; keys are never reused
    - No foreign key to the ledger: items hold weak references only
"""

from datetime import datetime, timezone

from sqlalchemy import String, LargeBinary, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from equiptrack.db.base import Base


class PhotoBlob(Base):
    __tablename__ = "photo_blobs"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
