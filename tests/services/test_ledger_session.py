"""Ledger Session — tests for dispatch, undo, autosave and the sharing lifecycle.

Tests cover:
    - Autosave after every committed change; no-ops push no history
    - Undo: N steps restore N states, history cap, restore does not autosave
    - Read-only snapshots: edits blocked, nothing persisted, EnsureDay allowed
    - Edit-access handshake and stale approvals
    - Startup with malformed or legacy persisted data; unstored legacy photos stay inline
    - Photos lifted from a shared link are discarded with the read-only view
    - Read accessors hand out read-only views
    - Orphaned photo blobs deleted; delete failures surface as warnings
    - Preferences slot and manual save
"""

import base64
import json

import pytest

from equiptrack.core.domain_types import DayKey, EquipmentCategory, NotificationKind
from equiptrack.core.ledger_operations import AddItem, ClearAll, DeleteItems, ReplaceAll, UpdateItem
from equiptrack.core.share_token import encode_share_token
from equiptrack.services.ledger_session import LedgerSession
from equiptrack.services.photo_attachments import attach_photo
from tests.builders import make_item, make_ledger
from tests.fakes import FailingPhotoStore

BOX = EquipmentCategory.BOX
DAY = DayKey("2024-03-01")


async def _stored_ledger(slot_storage, settings):
    payload = await slot_storage.read(settings.ledger_slot)
    return json.loads(payload) if payload is not None else None


async def _open(slot_storage, photo_store, settings) -> LedgerSession:
    session = LedgerSession(slot_storage, photo_store, settings)
    await session.init()
    return session


# ─── Dispatch and autosave ───────────────────────────────────────

async def test_edit_is_autosaved(session, slot_storage, settings):
    outcome = await session.dispatch(AddItem(DAY, BOX))
    assert outcome.applied
    stored = await _stored_ledger(slot_storage, settings)
    assert len(stored[DAY]["BOX"]) == 2


async def test_reload_sees_saved_edits(session, slot_storage, photo_store, settings):
    await session.ensure_day(DAY)
    item_id = session.ledger[DAY][BOX][0].id
    await session.dispatch(UpdateItem(DAY, BOX, make_item(item_id, serial="SN123")))

    reopened = await _open(slot_storage, photo_store, settings)
    assert reopened.ledger[DAY][BOX][0].serial_code == "SN123"


async def test_noop_dispatch_pushes_no_history(session):
    await session.ensure_day(DAY)
    outcome = await session.dispatch(DeleteItems(DAY, BOX, frozenset({"missing"})))
    assert not outcome.applied
    assert not session.can_undo


async def test_ensure_day_is_not_undoable(session):
    await session.ensure_day(DAY)
    assert DAY in session.ledger
    assert not session.can_undo


# ─── Undo ────────────────────────────────────────────────────────

async def test_undo_steps_back_through_each_edit(session):
    await session.ensure_day(DAY)
    states = [dict(session.ledger)]
    for _ in range(3):
        await session.dispatch(AddItem(DAY, BOX))
        states.append(dict(session.ledger))

    for expected in reversed(states[:-1]):
        result = await session.undo()
        assert result.restored
        assert result.message == "Last change undone"
        assert dict(session.ledger) == expected
    assert not session.can_undo


async def test_undo_with_empty_history(session):
    result = await session.undo()
    assert not result.restored
    assert result.message == "Nothing to undo"


async def test_history_keeps_last_ten_edits(session):
    for _ in range(12):
        await session.dispatch(AddItem(DAY, BOX))
    restored = 0
    while (await session.undo()).restored:
        restored += 1
    assert restored == 10
    # oldest two edits survive: lazy day placeholder + two rows
    assert len(session.ledger[DAY][BOX]) == 3


async def test_undo_restore_is_not_autosaved(session, slot_storage, settings):
    await session.dispatch(AddItem(DAY, BOX))
    before_undo = await _stored_ledger(slot_storage, settings)
    await session.undo()
    assert dict(session.ledger) == {}
    assert await _stored_ledger(slot_storage, settings) == before_undo

    # the next edit saves normally
    await session.dispatch(AddItem(DayKey("2024-03-02"), BOX))
    assert set(await _stored_ledger(slot_storage, settings)) == {"2024-03-02"}


async def test_clear_all_is_undoable(session):
    await session.dispatch(ReplaceAll(make_ledger({DAY: {BOX: [make_item("a", serial="S1")]}})))
    await session.dispatch(ClearAll())
    assert dict(session.ledger) == {}
    await session.undo()
    assert session.ledger[DAY][BOX][0].serial_code == "S1"


# ─── Read-only snapshots ─────────────────────────────────────────

async def test_import_enters_read_only_without_persisting(session, slot_storage, settings):
    await session.dispatch(AddItem(DAY, BOX))
    own = await _stored_ledger(slot_storage, settings)
    shared = make_ledger({"2024-05-05": {BOX: [make_item("s", serial="SHARED")]}})

    assert await session.import_shared_snapshot(encode_share_token(shared))
    assert session.access.is_read_only
    assert dict(session.ledger) == shared
    assert not session.can_undo
    assert session.access.notifications[0].kind == NotificationKind.INFO
    assert await _stored_ledger(slot_storage, settings) == own


async def test_read_only_blocks_edits(session, slot_storage, settings):
    shared = make_ledger({DAY: {BOX: [make_item("s", serial="SHARED")]}})
    await session.import_shared_snapshot(encode_share_token(shared))

    outcome = await session.dispatch(AddItem(DAY, BOX))
    assert not outcome.applied
    assert outcome.blocked["error_code"] == "READ_ONLY_SESSION"
    assert dict(session.ledger) == shared
    assert (await session.undo()).blocked is not None
    assert await _stored_ledger(slot_storage, settings) is None


async def test_read_only_day_view_is_never_persisted(session, slot_storage, settings):
    await session.import_shared_snapshot(encode_share_token({}))
    await session.ensure_day(DayKey("2030-01-01"))
    assert "2030-01-01" in session.ledger
    assert not await session.save()
    await session.teardown()
    assert await _stored_ledger(slot_storage, settings) is None


async def test_malformed_token_changes_nothing(session):
    await session.dispatch(AddItem(DAY, BOX))
    before = dict(session.ledger)
    assert not await session.import_shared_snapshot("%%%garbage%%%")
    assert not session.access.is_read_only
    assert dict(session.ledger) == before
    assert session.access.notifications[0].kind == NotificationKind.ALERT


async def test_deeply_nested_token_is_rejected(session):
    token = base64.urlsafe_b64encode(b"[" * 200_000).decode()
    assert not await session.import_shared_snapshot(token)
    assert not session.access.is_read_only


async def test_shared_photos_are_discarded_with_the_view(session, photo_store):
    data_url = "data:image/png;base64," + base64.b64encode(b"shared-png").decode()
    shared = make_ledger({DAY: {BOX: [make_item("s", photos=[data_url])]}})
    assert await session.import_shared_snapshot(encode_share_token(shared))
    key = session.ledger[DAY][BOX][0].photo_refs[0]
    assert await photo_store.get(key) == b"shared-png"

    # a second import replaces the view and its photos
    assert await session.import_shared_snapshot(encode_share_token(shared))
    assert await photo_store.get(key) is None
    second_key = session.ledger[DAY][BOX][0].photo_refs[0]

    await session.teardown()
    assert await photo_store.get(second_key) is None


async def test_granted_snapshot_keeps_its_photos(session, photo_store):
    data_url = "data:image/png;base64," + base64.b64encode(b"kept").decode()
    shared = make_ledger({DAY: {BOX: [make_item("s", photos=[data_url])]}})
    await session.import_shared_snapshot(encode_share_token(shared))
    key = session.ledger[DAY][BOX][0].photo_refs[0]

    await session.request_edit_access()
    await session.wait_for_approval()
    approval = next(
        n for n in session.access.notifications if n.kind == NotificationKind.REQUEST
    )
    session.grant_edit_access(approval.id)
    await session.teardown()
    assert await photo_store.get(key) == b"kept"


# ─── Edit-access handshake ──────────────────────────────────────

async def test_handshake_restores_editing(session, slot_storage, settings):
    await session.import_shared_snapshot(encode_share_token(make_ledger({DAY: {}})))
    assert await session.request_edit_access()
    await session.wait_for_approval()

    approval = next(
        n for n in session.access.notifications if n.kind == NotificationKind.REQUEST
    )
    session.grant_edit_access(approval.id)
    assert not session.access.is_read_only

    outcome = await session.dispatch(AddItem(DAY, BOX))
    assert outcome.applied
    assert DAY in await _stored_ledger(slot_storage, settings)


async def test_approval_for_an_earlier_snapshot_is_ignored(session):
    await session.import_shared_snapshot(encode_share_token({}))
    await session.request_edit_access()
    session.access.enter_read_only()
    await session.wait_for_approval()
    assert not any(n.kind == NotificationKind.REQUEST for n in session.access.notifications)
    assert session.access.is_read_only


async def test_request_when_editable_does_nothing(session):
    assert not await session.request_edit_access()


# ─── Startup ─────────────────────────────────────────────────────

async def test_invalid_json_starts_empty(slot_storage, photo_store, settings):
    await slot_storage.write(settings.ledger_slot, "{not json")
    session = await _open(slot_storage, photo_store, settings)
    assert dict(session.ledger) == {}


async def test_malformed_ledger_starts_empty(slot_storage, photo_store, settings):
    await slot_storage.write(settings.ledger_slot, json.dumps({"2024-03-01": ["wrong"]}))
    session = await _open(slot_storage, photo_store, settings)
    assert dict(session.ledger) == {}


async def test_legacy_inline_photos_are_moved_to_photo_store(slot_storage, photo_store, settings):
    blob = b"\xff\xd8jpeg-bytes"
    data_url = "data:image/jpeg;base64," + base64.b64encode(blob).decode()
    await slot_storage.write(settings.ledger_slot, json.dumps(
        {DAY: {"CAMERA": [{"id": "cam", "serial": "C1", "photos": [data_url]}]}},
    ))
    session = await _open(slot_storage, photo_store, settings)

    key = session.ledger[DAY][EquipmentCategory.CAMERA][0].photo_refs[0]
    assert not key.startswith("data:")
    assert await photo_store.get(key) == blob
    stored = await _stored_ledger(slot_storage, settings)
    assert stored[DAY]["CAMERA"][0]["photos"] == [key]


async def test_unstored_legacy_photo_stays_inline(slot_storage, photo_store, settings):
    data_url = "data:image/jpeg;base64," + base64.b64encode(b"jpeg").decode()
    await slot_storage.write(settings.ledger_slot, json.dumps(
        {DAY: {"CAMERA": [{"id": "cam", "photos": [data_url]}]}},
    ))
    failing = FailingPhotoStore()
    session = await _open(slot_storage, failing, settings)

    assert failing.calls == ["put"]
    assert session.ledger[DAY][EquipmentCategory.CAMERA][0].photo_refs == (data_url,)
    stored = await _stored_ledger(slot_storage, settings)
    assert stored[DAY]["CAMERA"][0]["photos"] == [data_url]

    # the next start with a working store finishes the move
    retried = await _open(slot_storage, photo_store, settings)
    key = retried.ledger[DAY][EquipmentCategory.CAMERA][0].photo_refs[0]
    assert await photo_store.get(key) == b"jpeg"


async def test_undecodable_inline_photo_keeps_the_ledger(slot_storage, photo_store, settings):
    await slot_storage.write(settings.ledger_slot, json.dumps({
        DAY: {"CAMERA": [{"id": "cam", "photos": ["data:image/jpeg,notb64"]}]},
        "2024-03-02": {"BOX": [{"id": "b", "serial": "SN2"}]},
    }))
    session = await _open(slot_storage, photo_store, settings)
    assert set(session.ledger) == {DAY, "2024-03-02"}
    assert session.ledger[DAY][EquipmentCategory.CAMERA][0].photo_refs == ("data:image/jpeg,notb64",)
    assert session.ledger["2024-03-02"][BOX][0].serial_code == "SN2"


# ─── Photo blob cleanup ─────────────────────────────────────────

async def test_deleting_an_item_deletes_its_photos(session, photo_store):
    await session.ensure_day(DAY)
    item_id = session.ledger[DAY][BOX][0].id
    attached = await attach_photo(session, DAY, BOX, item_id, b"image")
    assert await photo_store.get(attached.photo_key) == b"image"

    await session.dispatch(DeleteItems(DAY, BOX, frozenset({item_id})))
    assert await photo_store.get(attached.photo_key) is None


async def test_failed_blob_delete_is_a_warning(slot_storage, settings):
    session = await _open(slot_storage, FailingPhotoStore(), settings)
    await session.dispatch(ReplaceAll(make_ledger({DAY: {BOX: [make_item("a", photos=["k1"])]}})))
    outcome = await session.dispatch(ClearAll())
    assert outcome.applied
    assert outcome.warnings == ["Photo k1 could not be deleted"]
    assert dict(session.ledger) == {}


# ─── Preferences and manual save ────────────────────────────────

async def test_autosave_off_defers_writes_until_save(session, slot_storage, settings):
    await session.update_preferences(autosave_enabled=False)
    await session.dispatch(AddItem(DAY, BOX))
    assert await _stored_ledger(slot_storage, settings) is None

    assert await session.save()
    assert DAY in await _stored_ledger(slot_storage, settings)


async def test_preferences_survive_reload(session, slot_storage, photo_store, settings):
    await session.update_preferences(autosave_enabled=False, display_name="Ana")
    reopened = await _open(slot_storage, photo_store, settings)
    assert not reopened.preferences.autosave_enabled
    assert reopened.preferences.display_name == "Ana"


# ─── Read views ─────────────────────────────────────────────────

async def test_read_accessors_cannot_mutate_the_ledger(session):
    record = await session.ensure_day(DAY)
    await session.dispatch(AddItem(DAY, BOX))
    before = dict(session.ledger)

    with pytest.raises(TypeError):
        record[BOX] = ()
    with pytest.raises(TypeError):
        session.record_for(DAY)[BOX] = ()
    with pytest.raises(TypeError):
        session.ledger[DAY][BOX] = ()

    await session.undo()
    assert len(session.ledger[DAY][BOX]) == 1
    assert len(before[DAY][BOX]) == 2
