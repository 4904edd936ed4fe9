"""Access Enforcement — the mutation gate for read-only sessions.

Invariants:
    - All functions are PURE: no IO, no async, no side effects
    - Return error dict on violation, None on success
    - ReplaceAll and EnsureDay pass in any mode (loads and lazy day creation are
      not edits; EnsureDay on a transient snapshot is never persisted)

Design Decisions:
    - Return dicts (not exceptions): the session hands the same shape back to
      UI collaborators whether the dispatch ran or was blocked
"""

from equiptrack.core.access_state import AccessState
from equiptrack.core.ledger_operations import (
    EnsureDay, LedgerOperation, ReplaceAll, operation_name,
)


def check_editable(state: AccessState) -> dict | None:
    """Edits require EDITABLE mode; offer the access handshake otherwise."""
    if state.is_read_only:
        return {
            "status": "error",
            "error_code": "READ_ONLY_SESSION",
            "message": (
                "This ledger is a read-only shared copy. "
                "Request edit access to make changes."
            ),
            "offer": "request_edit_access",
            "request_pending": state.request_pending,
        }
    return None


def check_dispatch_allowed(state: AccessState, op: LedgerOperation) -> dict | None:
    if isinstance(op, (ReplaceAll, EnsureDay)):
        return None
    error = check_editable(state)
    if error is not None:
        error["operation"] = operation_name(op)
    return error
