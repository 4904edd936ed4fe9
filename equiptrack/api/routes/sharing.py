"""Sharing Routes — share-token export/import, edit-access handshake, notifications.

Invariants:
    - Import of a malformed token returns imported=false and changes nothing
    - Import enters read-only mode; grant on the approval notification leaves it
    - Unknown or unbound notification ids return 404
"""

from fastapi import APIRouter, Depends, status

from equiptrack.api.dependencies import get_ledger_session
from equiptrack.schemas.ledger import PreferencesUpdate, ShareImportRequest, notification_to_dict
from equiptrack.services.ledger_session import LedgerSession

router = APIRouter(prefix="/api/v1", tags=["sharing"])


def _access_payload(session: LedgerSession) -> dict:
    return {
        "access_mode": session.access.mode.value,
        "request_pending": session.access.request_pending,
    }


@router.get("/sharing/export")
async def export_token(session: LedgerSession = Depends(get_ledger_session)):
    return {"token": session.export_share_token()}


@router.post("/sharing/import")
async def import_token(
    body: ShareImportRequest, session: LedgerSession = Depends(get_ledger_session),
):
    imported = await session.import_shared_snapshot(body.token)
    return {"imported": imported, **_access_payload(session)}


@router.get("/sharing/access")
async def get_access(session: LedgerSession = Depends(get_ledger_session)):
    return _access_payload(session)


@router.post("/sharing/access/request", status_code=status.HTTP_202_ACCEPTED)
async def request_access(session: LedgerSession = Depends(get_ledger_session)):
    """Ask for edit access; approval arrives later as a notification."""
    requested = await session.request_edit_access()
    return {"requested": requested, **_access_payload(session)}


@router.post("/notifications/{notification_id}/grant")
async def grant_access(
    notification_id: str, session: LedgerSession = Depends(get_ledger_session),
):
    session.grant_edit_access(notification_id)
    return _access_payload(session)


@router.get("/notifications")
async def list_notifications(session: LedgerSession = Depends(get_ledger_session)):
    return {
        "notifications": [notification_to_dict(n) for n in session.access.notifications],
        "unread": session.access.unread_count,
    }


@router.post("/notifications/read")
async def mark_notifications_read(session: LedgerSession = Depends(get_ledger_session)):
    session.access.mark_all_read()
    return {"unread": 0}


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_notification(
    notification_id: str, session: LedgerSession = Depends(get_ledger_session),
):
    session.access.dismiss(notification_id)


@router.get("/preferences")
async def get_preferences(session: LedgerSession = Depends(get_ledger_session)):
    prefs = session.preferences
    return {"autosave": prefs.autosave_enabled, "display_name": prefs.display_name}


@router.put("/preferences")
async def put_preferences(
    body: PreferencesUpdate, session: LedgerSession = Depends(get_ledger_session),
):
    prefs = await session.update_preferences(
        autosave_enabled=body.autosave, display_name=body.display_name,
    )
    return {"autosave": prefs.autosave_enabled, "display_name": prefs.display_name}
