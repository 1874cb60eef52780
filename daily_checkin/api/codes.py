"""Redemption code history API."""

from fastapi import APIRouter, Query

from daily_checkin.api.deps import CurrentUser, DbSession
from daily_checkin.schemas.codes import CodeItem, CodeListResponse, CodeSearchResponse
from daily_checkin.services.codes import CodeHistoryService

router = APIRouter(prefix="/codes", tags=["Codes"])


@router.get("", response_model=CodeListResponse)
async def list_codes(
    user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """Codes distributed to the current user, newest first."""
    return await CodeHistoryService(db).list_codes(user.id, page, limit)


@router.get("/search", response_model=CodeSearchResponse)
async def search_codes(
    user: CurrentUser,
    db: DbSession,
    q: str = Query(..., description="At least 3 characters"),
):
    """Search the current user's codes by substring (max 20 results)."""
    items = await CodeHistoryService(db).search_codes(user.id, q)
    return {"query": q, "items": items}


@router.get("/{code_id}", response_model=CodeItem)
async def get_code(code_id: int, user: CurrentUser, db: DbSession):
    """One of the current user's codes."""
    return await CodeHistoryService(db).get_code(user.id, code_id)
