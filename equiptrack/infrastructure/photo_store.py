"""Photo Store — SQL-backed keyed blob store for item photos.

Invariants:
    - put/get/delete never block indefinitely: each call is bounded by a timeout
    - Every failure (timeout, storage error) surfaces as PhotoStoreError
    - delete of an absent key succeeds (idempotent)
    - put of an existing key overwrites it (keys are never reused, so this only
      happens on a retried write)

Design Decisions:
    - Separate table from the ledger slot: the ledger stays small and serializable,
      blobs are written and removed independently
    - Holds a DatabaseSessionManager rather than a session: each call is its own
      short transaction
"""

import asyncio
import logging

from sqlalchemy import delete, select

from equiptrack.core.domain_types import PhotoKey
from equiptrack.core.errors import ErrorContext, PhotoStoreError, StorageError
from equiptrack.infrastructure.database import DatabaseSessionManager
from equiptrack.models.photo_blob import PhotoBlob

logger = logging.getLogger(__name__)


class SqlPhotoStore:
    """PhotoStore implementation over the local database."""

    def __init__(self, db: DatabaseSessionManager, timeout_seconds: float = 10.0):
        self._db = db
        self._timeout = timeout_seconds

    async def put(self, key: PhotoKey, blob: bytes) -> None:
        await self._bounded("put", key, self._put(key, blob))

    async def get(self, key: PhotoKey) -> bytes | None:
        return await self._bounded("get", key, self._get(key))

    async def delete(self, key: PhotoKey) -> None:
        await self._bounded("delete", key, self._delete(key))

    async def _put(self, key: PhotoKey, blob: bytes) -> None:
        async with self._db.session() as db:
            existing = await db.get(PhotoBlob, key)
            if existing is None:
                db.add(PhotoBlob(key=key, data=blob, size_bytes=len(blob)))
            else:
                existing.data = blob
                existing.size_bytes = len(blob)
            await db.commit()

    async def _get(self, key: PhotoKey) -> bytes | None:
        async with self._db.session() as db:
            result = await db.execute(select(PhotoBlob.data).where(PhotoBlob.key == key))
            return result.scalar_one_or_none()

    async def _delete(self, key: PhotoKey) -> None:
        async with self._db.session() as db:
            await db.execute(delete(PhotoBlob).where(PhotoBlob.key == key))
            await db.commit()

    async def _bounded(self, operation: str, key: PhotoKey, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Photo store {operation} timed out after {self._timeout}s",
                extra={"photo_key": key, "operation": operation},
            )
            raise PhotoStoreError(
                "timed out", operation, ErrorContext(photo_key=key),
            )
        except StorageError as e:
            logger.error(
                f"Photo store {operation} failed: {e.message}",
                extra={"photo_key": key, "operation": operation, "error_code": e.code},
            )
            raise PhotoStoreError(e.message, operation, ErrorContext(photo_key=key))
