"""Ledger Snapshot — tests for the persisted wire format.

Tests cover:
    - Round trip through the JSON-safe snapshot
    - Wire field names
    - Legacy inline photos lifted out and replaced by photo keys
    - Undecodable inline photos kept verbatim without losing the ledger
    - restore_inline_photos puts unstored entries back in place
    - Malformed input raises MalformedSnapshotError
    - Unknown categories ignored, missing categories restored, numeric qt accepted
"""

import base64
import json

import pytest

from equiptrack.core.domain_types import EquipmentCategory
from equiptrack.core.errors import MalformedSnapshotError
from equiptrack.core.ledger_snapshot import (
    LegacyPhoto, ledger_from_snapshot, ledger_to_snapshot, restore_inline_photos,
)
from equiptrack.core.photo_keys import PHOTO_KEY_PREFIX
from tests.builders import make_item, make_ledger

BOX = EquipmentCategory.BOX
REMOTE = EquipmentCategory.REMOTE_CONTROL


def test_round_trip_preserves_ledger():
    ledger = make_ledger({
        "2024-03-01": {BOX: [make_item("a", qt="2", contract="C1", serial="S1", photos=["photo_x"])]},
        "2024-03-02": {REMOTE: [make_item("b", serial="R-1")]},
    })
    snapshot = json.loads(json.dumps(ledger_to_snapshot(ledger)))
    loaded = ledger_from_snapshot(snapshot)
    assert loaded.ledger == ledger
    assert not loaded.had_legacy_photos


def test_wire_names_match_stored_records():
    snapshot = ledger_to_snapshot(make_ledger({"2024-03-01": {BOX: [make_item("a", serial="S1")]}}))
    day = snapshot["2024-03-01"]
    assert "CONTROLE REMOTO" in day
    assert day["BOX"] == [{"id": "a", "qt": "", "contract": "", "serial": "S1", "photos": []}]


def test_none_is_empty_ledger():
    assert ledger_from_snapshot(None).ledger == {}


def test_legacy_inline_photo_becomes_key():
    payload = b"\x89PNG fake"
    data_url = "data:image/png;base64," + base64.b64encode(payload).decode()
    loaded = ledger_from_snapshot({"2024-03-01": {"BOX": [{"id": "a", "photos": [data_url, "photo_old"]}]}})
    refs = loaded.ledger["2024-03-01"][BOX][0].photo_refs
    assert refs[0].startswith(PHOTO_KEY_PREFIX)
    assert refs[1] == "photo_old"
    assert loaded.legacy_photos == {refs[0]: LegacyPhoto(payload, data_url)}


def test_undecodable_inline_photo_is_kept_verbatim():
    good = "data:image/png;base64," + base64.b64encode(b"ok").decode()
    loaded = ledger_from_snapshot({
        "2024-03-01": {"BOX": [{"id": "a", "photos": ["data:image/jpeg,notb64", good]}]},
        "2024-03-02": {"CHIP": [{"id": "b", "serial": "S2"}]},
    })
    assert set(loaded.ledger) == {"2024-03-01", "2024-03-02"}
    refs = loaded.ledger["2024-03-01"][BOX][0].photo_refs
    assert refs[0] == "data:image/jpeg,notb64"
    assert list(loaded.legacy_photos) == [refs[1]]
    assert loaded.ledger["2024-03-02"][EquipmentCategory.CHIP][0].serial_code == "S2"


def test_restore_inline_photos_only_rebuilds_affected_days():
    ledger = make_ledger({
        "2024-03-01": {BOX: [make_item("a", photos=["photo_new", "photo_kept"])]},
        "2024-03-02": {BOX: [make_item("b", photos=["photo_other"])]},
    })
    restored = restore_inline_photos(ledger, {"photo_new": "data:image/png;base64,AAAA"})
    assert restored["2024-03-01"][BOX][0].photo_refs == ("data:image/png;base64,AAAA", "photo_kept")
    assert restored["2024-03-02"] is ledger["2024-03-02"]
    assert ledger["2024-03-01"][BOX][0].photo_refs == ("photo_new", "photo_kept")
    assert restore_inline_photos(ledger, {}) is ledger


def test_unknown_category_ignored_and_missing_restored():
    loaded = ledger_from_snapshot({"2024-03-01": {"DRONE": [{"id": "d"}], "BOX": [{"id": "a", "qt": 3}]}})
    record = loaded.ledger["2024-03-01"]
    assert set(record) == set(EquipmentCategory)
    assert record[BOX][0].quantity == "3"
    assert len(record[EquipmentCategory.CHIP]) == 1


def test_missing_item_id_is_generated():
    loaded = ledger_from_snapshot({"2024-03-01": {"BOX": [{"serial": "S1"}]}})
    assert loaded.ledger["2024-03-01"][BOX][0].id


@pytest.mark.parametrize("data", [
    [],
    "not a ledger",
    {"yesterday": {}},
    {"2024-03-01": []},
    {"2024-03-01": {"BOX": "oops"}},
    {"2024-03-01": {"BOX": [{"id": "a", "serial": ["x"]}]}},
])
def test_malformed_snapshot_raises(data):
    with pytest.raises(MalformedSnapshotError):
        ledger_from_snapshot(data)
