"""Photo Routes — upload, fetch and delete item photos.

Invariants:
    - Uploads are raw request bodies (image bytes), capped at photo_max_bytes
    - A failed blob write returns 503 and leaves the item unchanged
    - GET on a deleted or unknown key returns 404

Design Decisions:
    - Raw body over multipart: camera collaborators post the captured JPEG as-is
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from equiptrack.api.dependencies import get_ledger_session, raise_if_blocked, to_day_key
from equiptrack.core.domain_types import EquipmentCategory, PhotoKey
from equiptrack.core.errors import ResourceNotFoundError
from equiptrack.services.ledger_session import LedgerSession
from equiptrack.services.photo_attachments import attach_photo, remove_photo

router = APIRouter(prefix="/api/v1", tags=["photos"])


@router.post(
    "/ledger/days/{day}/{category}/items/{item_id}/photos",
    status_code=status.HTTP_201_CREATED,
)
async def upload_photo(
    day: date, category: EquipmentCategory, item_id: str, request: Request,
    scanned_code: str | None = Query(None, max_length=20),
    session: LedgerSession = Depends(get_ledger_session),
):
    blob = await request.body()
    if not blob:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Empty photo upload")
    if len(blob) > session.settings.photo_max_bytes:
        raise HTTPException(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Photo too large")
    result = await attach_photo(
        session, to_day_key(day), category, item_id, blob, scanned_code,
    )
    raise_if_blocked(result.dispatch)
    return {"photo_key": result.photo_key, **result.dispatch.to_dict()}


@router.delete("/ledger/days/{day}/{category}/items/{item_id}/photos/{key}")
async def delete_photo(
    day: date, category: EquipmentCategory, item_id: str, key: str,
    session: LedgerSession = Depends(get_ledger_session),
):
    outcome = await remove_photo(session, to_day_key(day), category, item_id, key)
    return raise_if_blocked(outcome).to_dict()


@router.get("/photos/{key}")
async def get_photo(key: str, session: LedgerSession = Depends(get_ledger_session)):
    blob = await session.photo_store.get(PhotoKey(key))
    if blob is None:
        raise ResourceNotFoundError("Photo", key)
    return Response(content=blob, media_type="application/octet-stream")
