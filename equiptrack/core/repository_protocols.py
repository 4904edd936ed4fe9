"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, tests can pass plain fakes
    - Async in Protocol: implementations do IO; core functions that need their
      results receive plain values from the shell instead
"""

from typing import Protocol

from equiptrack.core.domain_types import PhotoKey


class PhotoStore(Protocol):
    """Keyed blob store for photo payloads, independent of ledger persistence.

    Failures raise PhotoStoreError; no call blocks indefinitely.
    """
    async def put(self, key: PhotoKey, blob: bytes) -> None: ...
    async def get(self, key: PhotoKey) -> bytes | None: ...
    async def delete(self, key: PhotoKey) -> None: ...


class SlotStorage(Protocol):
    """Local persistent storage of serialized records under fixed named slots."""
    async def read(self, slot: str) -> str | None: ...
    async def write(self, slot: str, payload: str) -> None: ...
