"""Slot Storage — local persistent storage of serialized records under named slots.

Invariants:
    - One row per slot; write replaces the whole payload
    - read of a missing slot returns None
    - Failures surface as StorageError (mapped by DatabaseSessionManager)
"""

from equiptrack.infrastructure.database import DatabaseSessionManager
from equiptrack.models.storage_slot import StorageSlot


class SqlSlotStorage:
    """SlotStorage implementation over the local database."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def read(self, slot: str) -> str | None:
        async with self._db.session() as db:
            row = await db.get(StorageSlot, slot)
            return row.payload if row else None

    async def write(self, slot: str, payload: str) -> None:
        async with self._db.session() as db:
            row = await db.get(StorageSlot, slot)
            if row is None:
                db.add(StorageSlot(name=slot, payload=payload))
            else:
                row.payload = payload
            await db.commit()
