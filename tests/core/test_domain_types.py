"""Domain Types — verifies category labels, enum values and day keys.

Tests:
    - Categories keep their stored labels and display order
    - Enums serialize to their wire values
    - day_key / parse_day_key round trip; malformed keys parse to None
"""

from datetime import date

from equiptrack.core.domain_types import (
    CATEGORIES, AccessMode, EquipmentCategory, NotificationKind, day_key, parse_day_key,
)


def test_categories_in_display_order():
    assert [c.value for c in CATEGORIES] == [
        "BOX", "BOX SOUND", "CONTROLE REMOTO", "CAMERA", "CHIP",
    ]


def test_category_from_stored_label():
    assert EquipmentCategory("CONTROLE REMOTO") is EquipmentCategory.REMOTE_CONTROL


def test_enums_use_wire_values():
    assert AccessMode.READ_ONLY.value == "read_only"
    assert NotificationKind.REQUEST.value == "request"


def test_day_key_round_trip():
    assert day_key(date(2024, 3, 1)) == "2024-03-01"
    assert parse_day_key("2024-03-01") == date(2024, 3, 1)


def test_malformed_day_keys():
    assert parse_day_key("2024-02-30") is None
    assert parse_day_key("yesterday") is None
