"""ORM Models — SQLAlchemy declarative models for locally persisted state.

Invariants:
    - All models inherit from Base (db/base.py)
    - The ledger itself is stored as one serialized slot, not as rows

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
"""

from equiptrack.models.storage_slot import StorageSlot  # noqa: F401
from equiptrack.models.photo_blob import PhotoBlob  # noqa: F401
