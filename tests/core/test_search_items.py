"""Item Search — tests for identifier substring search.

Tests cover:
    - Minimum term length
    - Matches serial or contract, only on active items
    - Most recent day first
"""

from equiptrack.core.domain_types import EquipmentCategory
from equiptrack.core.search_items import search_items
from tests.builders import make_item, make_ledger

BOX = EquipmentCategory.BOX


def _ledger():
    return make_ledger({
        "2024-03-01": {BOX: [make_item("a", serial="SN100")]},
        "2024-03-05": {BOX: [make_item("b", contract="SN-CT")]},
        "2024-03-03": {BOX: [make_item("c", serial="XY")]},
    })


def test_short_term_returns_nothing():
    assert search_items(_ledger(), "S") == []


def test_matches_serial_and_contract_newest_first():
    hits = search_items(_ledger(), "SN")
    assert [(h.day, h.item.id) for h in hits] == [("2024-03-05", "b"), ("2024-03-01", "a")]


def test_no_match():
    assert search_items(_ledger(), "ZZ") == []
