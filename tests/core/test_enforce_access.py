"""Access Enforcement — tests for the read-only mutation gate.

Tests cover:
    - Editable sessions pass every operation
    - Read-only sessions block user edits with the handshake offer
    - ReplaceAll and EnsureDay pass in read-only mode
"""

from equiptrack.core.access_state import AccessState
from equiptrack.core.domain_types import DayKey, EquipmentCategory
from equiptrack.core.enforce_access import check_dispatch_allowed, check_editable
from equiptrack.core.ledger import create_blank_record
from equiptrack.core.ledger_operations import AddItem, ClearAll, EnsureDay, ReplaceAll

DAY = DayKey("2024-03-01")


def _read_only() -> AccessState:
    state = AccessState()
    state.enter_read_only()
    return state


def test_editable_passes():
    assert check_editable(AccessState()) is None
    assert check_dispatch_allowed(AccessState(), ClearAll()) is None


def test_read_only_blocks_edits():
    error = check_dispatch_allowed(_read_only(), AddItem(DAY, EquipmentCategory.BOX))
    assert error["error_code"] == "READ_ONLY_SESSION"
    assert error["offer"] == "request_edit_access"
    assert error["operation"] == "AddItem"
    assert error["request_pending"] is False


def test_read_only_allows_load_and_day_creation():
    state = _read_only()
    assert check_dispatch_allowed(state, ReplaceAll({})) is None
    assert check_dispatch_allowed(state, EnsureDay(DAY, create_blank_record())) is None
