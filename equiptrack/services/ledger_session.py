"""Ledger Session — the imperative shell around the pure ledger core.

Invariants:
    - One LedgerSession owns one ledger, one undo log and one access state
    - dispatch applies the transition synchronously, before its first await:
      callers observe the new ledger immediately and dispatches never interleave
    - Only history-tracked operations that change the ledger push to the undo log
    - READ_ONLY sessions never write the ledger slot
    - EDITABLE sessions write the ledger slot after every committed change,
      unless autosave is disabled or the one-shot suppress flag is set (undo restore)
    - Malformed persisted data, storage failures and blob-delete failures are
      logged and degrade to a no-op; nothing here ends the session

Design Decisions:
    - Injectable, not a module-level singleton: storage, photo store and settings
      are passed in, so tests build as many sessions as they like
    - Orphaned photo keys come back from apply_operation; the session deletes the
      blobs after the ledger change is committed
    - Approval timer is an asyncio.Task guarded by AccessState.epoch; teardown
      cancels it, late approvals are ignored
    - Photos lifted out of a shared snapshot are transient until edit access is
      granted: replacing or tearing down the read-only view deletes their blobs
    - Read accessors return MappingProxyType views; records are shared with
      undo snapshots
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Mapping

from equiptrack.config import Settings, get_settings
from equiptrack.core.access_state import AccessState
from equiptrack.core.aggregation import (
    RangeView, category_totals, day_total, month_to_date_total, range_aggregate,
)
from equiptrack.core.apply_operation import apply_operation
from equiptrack.core.domain_types import (
    DayKey, EquipmentCategory, NotificationKind, PhotoKey, RangeScope,
)
from equiptrack.core.duplicate_detector import is_duplicate
from equiptrack.core.enforce_access import check_dispatch_allowed, check_editable
from equiptrack.core.errors import MalformedSnapshotError, PhotoStoreError, StorageError
from equiptrack.core.ledger import Ledger, create_blank_record
from equiptrack.core.ledger_operations import (
    EnsureDay, LedgerOperation, ReplaceAll, is_history_tracked, operation_name,
)
from equiptrack.core.ledger_snapshot import (
    LoadedLedger, ledger_from_snapshot, ledger_to_snapshot, restore_inline_photos,
)
from equiptrack.core.preferences import (
    Preferences, preferences_from_snapshot, preferences_to_snapshot, update_preferences,
)
from equiptrack.core.repository_protocols import PhotoStore, SlotStorage
from equiptrack.core.search_items import SearchHit, search_items
from equiptrack.core.share_token import decode_share_token, encode_share_token
from equiptrack.core.undo_log import UndoLog

logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    """What happened to one dispatched operation."""
    operation: str
    applied: bool
    blocked: dict | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "applied": self.applied,
            "blocked": self.blocked,
            "warnings": self.warnings,
        }


@dataclass
class UndoOutcome:
    restored: bool
    message: str
    remaining: int
    blocked: dict | None = None


class LedgerSession:
    """Single-writer session over the equipment ledger."""

    def __init__(
        self,
        storage: SlotStorage,
        photo_store: PhotoStore,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.storage = storage
        self.photo_store = photo_store
        self.undo_log = UndoLog(limit=self.settings.history_limit)
        self.access = AccessState()
        self.preferences = Preferences()
        self._ledger: Ledger = {}
        self._suppress_next_autosave = False
        self._unsaved = False
        self._approval_task: asyncio.Task | None = None
        self._transient_photo_keys: set[PhotoKey] = set()

    # --- Lifecycle -------------------------------------------------------------

    async def init(self) -> None:
        """Load preferences and the ledger from their slots."""
        self.preferences = preferences_from_snapshot(
            await self._read_slot(self.settings.preferences_slot),
        )
        loaded = self._decode_ledger(await self._read_slot(self.settings.ledger_slot))
        self._ledger = loaded.ledger
        if loaded.had_legacy_photos:
            failed = await self._store_legacy_photos(loaded)
            # unstored photos go back inline so the write-back never drops them
            self._ledger = restore_inline_photos(self._ledger, failed)
            await self._save_ledger()
        logger.info(
            f"Ledger session initialised with {len(self._ledger)} day(s)",
            extra={"access_mode": self.access.mode.value},
        )

    async def teardown(self) -> None:
        """Cancel the approval timer and flush anything not yet written."""
        self._cancel_approval()
        if self.access.is_read_only:
            await self._discard_transient_photos()
        elif self._unsaved and self.preferences.autosave_enabled:
            await self.save()

    async def save(self) -> bool:
        """Write the ledger slot now, regardless of autosave. No-op when read-only."""
        if self.access.is_read_only:
            return False
        await self._save_ledger()
        return not self._unsaved

    # --- Read side -------------------------------------------------------------

    @property
    def ledger(self) -> Mapping[DayKey, Mapping[EquipmentCategory, tuple]]:
        return MappingProxyType(
            {day: MappingProxyType(record) for day, record in self._ledger.items()},
        )

    @property
    def can_undo(self) -> bool:
        return self.undo_log.can_undo

    def record_for(self, day: DayKey) -> Mapping[EquipmentCategory, tuple] | None:
        record = self._ledger.get(day)
        return None if record is None else MappingProxyType(record)

    def category_totals(self, day: DayKey) -> dict[EquipmentCategory, int]:
        return category_totals(self._ledger.get(day) or {})

    def day_total(self, day: DayKey) -> int:
        return day_total(self._ledger.get(day))

    def month_to_date_total(self, anchor: date) -> int:
        return month_to_date_total(self._ledger, anchor)

    def range_aggregate(self, anchor: date, scope: RangeScope) -> RangeView:
        return range_aggregate(self._ledger, anchor, scope)

    def is_duplicate(self, value: str, exclude_id: str | None) -> bool:
        return is_duplicate(
            self._ledger, value, exclude_id, self.settings.duplicate_min_length,
        )

    def search(self, term: str) -> list[SearchHit]:
        return search_items(self._ledger, term)

    # --- Write side ------------------------------------------------------------

    async def dispatch(self, op: LedgerOperation) -> DispatchOutcome:
        name = operation_name(op)
        blocked = check_dispatch_allowed(self.access, op)
        if blocked is not None:
            logger.info(
                f"Blocked {name} on read-only ledger",
                extra={"operation": name, "error_code": blocked["error_code"]},
            )
            return DispatchOutcome(name, applied=False, blocked=blocked)

        previous = self._ledger
        result = apply_operation(previous, op)
        if not result.changed:
            return DispatchOutcome(name, applied=False)
        if is_history_tracked(op):
            self.undo_log.push(previous)
        self._ledger = result.ledger
        self._unsaved = True

        warnings = await self._delete_orphans(result.orphaned_photo_refs)
        await self._autosave()
        logger.debug(
            f"Applied {name}",
            extra={
                "operation": name,
                "orphaned": len(result.orphaned_photo_refs),
                "history_depth": self.undo_log.depth,
            },
        )
        return DispatchOutcome(name, applied=True, warnings=warnings)

    async def ensure_day(self, day: DayKey) -> Mapping[EquipmentCategory, tuple]:
        """Create the day's record the first time it is viewed. Never overwrites."""
        await self.dispatch(EnsureDay(day, create_blank_record()))
        return MappingProxyType(self._ledger[day])

    async def undo(self) -> UndoOutcome:
        blocked = check_editable(self.access)
        if blocked is not None:
            return UndoOutcome(False, blocked["message"], self.undo_log.depth, blocked)
        snapshot = self.undo_log.pop()
        if snapshot is None:
            logger.info("Undo requested with empty history")
            return UndoOutcome(False, "Nothing to undo", 0)
        self._suppress_next_autosave = True
        await self.dispatch(ReplaceAll(snapshot))
        # ReplaceAll always commits, so the flag has been consumed
        self._suppress_next_autosave = False
        return UndoOutcome(True, "Last change undone", self.undo_log.depth)

    # --- Sharing ---------------------------------------------------------------

    def export_share_token(self) -> str:
        return encode_share_token(self._ledger)

    async def import_shared_snapshot(self, token: str) -> bool:
        """Load a shared ledger as a transient read-only view. Fails closed."""
        loaded = decode_share_token(token)
        if loaded is None:
            self.access.notify(
                NotificationKind.ALERT, "The shared link could not be read. Nothing was imported.",
            )
            return False
        self._cancel_approval()
        await self._discard_transient_photos()
        ledger = loaded.ledger
        if loaded.had_legacy_photos:
            failed = await self._store_legacy_photos(loaded)
            ledger = restore_inline_photos(ledger, failed)
            self._transient_photo_keys = set(loaded.legacy_photos) - set(failed)
        self.access.enter_read_only()
        self.undo_log.clear()
        await self.dispatch(ReplaceAll(ledger))
        self.access.notify(
            NotificationKind.INFO,
            f"Viewing a shared ledger with {len(loaded.ledger)} day(s), read-only.",
        )
        logger.info(
            "Imported shared snapshot",
            extra={"access_mode": self.access.mode.value},
        )
        return True

    async def request_edit_access(self) -> bool:
        """Step 1 of the handshake; schedules the simulated owner approval."""
        epoch = self.access.raise_edit_request()
        if epoch is None:
            return False
        self._cancel_approval()
        self._approval_task = asyncio.get_running_loop().create_task(
            self._approve_later(epoch),
        )
        return True

    def grant_edit_access(self, notification_id: str) -> None:
        """Step 2: invoke the approval notification's bound action."""
        self.access.grant_edit_access(notification_id)
        self._cancel_approval()
        # the snapshot is now the owned ledger, so its photos are kept
        self._transient_photo_keys.clear()
        logger.info("Edit access granted", extra={"access_mode": self.access.mode.value})

    async def wait_for_approval(self) -> None:
        """Await the pending approval timer, if any."""
        if self._approval_task is not None:
            await asyncio.gather(self._approval_task, return_exceptions=True)

    async def _approve_later(self, epoch: int) -> None:
        await asyncio.sleep(self.settings.approval_delay_seconds)
        if self.access.approve_edit_request(epoch) is None:
            logger.info("Ignoring stale edit-access approval")

    def _cancel_approval(self) -> None:
        task, self._approval_task = self._approval_task, None
        if task is not None and not task.done():
            task.cancel()

    # --- Preferences -----------------------------------------------------------

    async def update_preferences(
        self, autosave_enabled: bool | None = None, display_name: str | None = None,
    ) -> Preferences:
        self.preferences = update_preferences(
            self.preferences,
            autosave_enabled=autosave_enabled, display_name=display_name,
        )
        await self._write_slot(
            self.settings.preferences_slot,
            json.dumps(preferences_to_snapshot(self.preferences), ensure_ascii=False),
        )
        return self.preferences

    # --- Persistence helpers ---------------------------------------------------

    def _decode_ledger(self, data) -> LoadedLedger:
        try:
            return ledger_from_snapshot(data)
        except MalformedSnapshotError as e:
            logger.warning(
                f"Persisted ledger is malformed, starting empty: {e.message}",
                extra={"error_code": e.code},
            )
            return LoadedLedger({})

    async def _read_slot(self, slot: str):
        try:
            payload = await self.storage.read(slot)
        except StorageError as e:
            logger.error(f"Could not read slot '{slot}': {e.message}", extra={"error_code": e.code})
            return None
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Slot '{slot}' holds invalid JSON, ignoring it: {e}")
            return None

    async def _write_slot(self, slot: str, payload: str) -> bool:
        try:
            await self.storage.write(slot, payload)
            return True
        except StorageError as e:
            logger.error(f"Could not write slot '{slot}': {e.message}", extra={"error_code": e.code})
            return False

    async def _save_ledger(self) -> None:
        payload = json.dumps(ledger_to_snapshot(self._ledger), ensure_ascii=False)
        if await self._write_slot(self.settings.ledger_slot, payload):
            self._unsaved = False

    async def _autosave(self) -> None:
        if self._suppress_next_autosave:
            self._suppress_next_autosave = False
            return
        if self.access.is_read_only or not self.preferences.autosave_enabled:
            return
        await self._save_ledger()

    async def _delete_orphans(self, keys: tuple[PhotoKey, ...]) -> list[str]:
        warnings = []
        for key in keys:
            try:
                await self.photo_store.delete(key)
            except PhotoStoreError as e:
                logger.warning(
                    f"Photo blob left behind: {e.message}",
                    extra={"photo_key": key, "error_code": e.code},
                )
                warnings.append(f"Photo {key} could not be deleted")
        return warnings

    async def _store_legacy_photos(self, loaded: LoadedLedger) -> dict[PhotoKey, str]:
        """Write lifted inline photos to the photo store.

        Returns the original inline entry of every photo that could not be written.
        """
        failed: dict[PhotoKey, str] = {}
        for key, photo in loaded.legacy_photos.items():
            try:
                await self.photo_store.put(key, photo.blob)
            except PhotoStoreError as e:
                logger.warning(
                    f"Legacy photo kept inline, photo store write failed: {e.message}",
                    extra={"photo_key": key, "error_code": e.code},
                )
                failed[key] = photo.source
        logger.info(
            f"Moved {len(loaded.legacy_photos) - len(failed)} of "
            f"{len(loaded.legacy_photos)} inline photo(s) to the photo store",
        )
        return failed

    async def _discard_transient_photos(self) -> None:
        keys, self._transient_photo_keys = tuple(self._transient_photo_keys), set()
        if keys:
            await self._delete_orphans(keys)
