"""Admin API endpoints.

Protected by the ``X-API-Key`` header.
"""

from fastapi import APIRouter, Query

from daily_checkin.api.deps import AdminOperator, Cache, DbSession
from daily_checkin.schemas.admin import (
    BatchDistributeRequest,
    DistributionResponse,
    GenerateCodesRequest,
    GenerateCodesResponse,
    GiftRequest,
    InventoryResponse,
    LevelTableResponse,
    LevelTableUpdate,
    PendingListResponse,
    ResolvePendingRequest,
    ResolvePendingResponse,
    UploadCodesRequest,
    UploadCodesResponse,
)
from daily_checkin.services.distribution import DistributionService
from daily_checkin.services.levels import LevelTableService

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# Inventory
# ============================================================================


@router.post("/codes/upload", response_model=UploadCodesResponse)
async def upload_codes(request: UploadCodesRequest, db: DbSession, operator: AdminOperator):
    """Add uploaded codes of one amount to the inventory."""
    return await DistributionService(db).upload_codes(
        request.content,
        request.amount,
        filename=request.filename,
        operator=operator,
    )


@router.post("/codes/generate", response_model=GenerateCodesResponse)
async def generate_codes(request: GenerateCodesRequest, db: DbSession, operator: AdminOperator):
    """Generate new KYX codes of one amount."""
    return await DistributionService(db).generate_codes(
        request.count,
        request.amount,
        operator=operator,
    )


@router.get("/inventory", response_model=InventoryResponse)
async def get_inventory(db: DbSession, operator: AdminOperator):
    """Totals per amount and the number of claimable codes."""
    return await DistributionService(db).inventory_summary()


# ============================================================================
# Distribution
# ============================================================================


@router.post("/distribute/gift", response_model=DistributionResponse)
async def gift_codes(request: GiftRequest, db: DbSession, cache: Cache, operator: AdminOperator):
    """Give one code of the requested amount to each user."""
    return await DistributionService(db, cache=cache).gift(
        request.user_ids,
        request.amount,
        message=request.message,
        operator=operator,
    )


@router.post("/distribute/batch", response_model=DistributionResponse)
async def batch_distribute(
    request: BatchDistributeRequest,
    db: DbSession,
    cache: Cache,
    operator: AdminOperator,
):
    """Give one code to each user (requires confirm=true)."""
    return await DistributionService(db, cache=cache).batch_distribute(
        request.user_ids,
        amount=request.amount,
        confirm=request.confirm,
        operator=operator,
    )


# ============================================================================
# Pending distributions
# ============================================================================


@router.get("/pending", response_model=PendingListResponse)
async def list_pending(
    db: DbSession,
    operator: AdminOperator,
    limit: int = Query(100, ge=1, le=1000),
):
    """Unresolved pending distributions, oldest first."""
    return await DistributionService(db).list_pending(limit)


@router.post("/pending/resolve", response_model=ResolvePendingResponse)
async def resolve_pending(
    db: DbSession,
    cache: Cache,
    operator: AdminOperator,
    request: ResolvePendingRequest | None = None,
):
    """Assign available codes to pending entries, oldest first."""
    return await DistributionService(db, cache=cache).resolve_pending(
        limit=request.limit if request else None,
        operator=operator,
    )


# ============================================================================
# Levels
# ============================================================================


@router.get("/levels", response_model=LevelTableResponse)
async def get_levels(db: DbSession, operator: AdminOperator):
    service = LevelTableService(db)
    table = await service.get_table()
    return {
        "levels": [{"level": lvl, "required_experience": exp} for lvl, exp in table],
        "is_default": await service.is_default(),
    }


@router.put("/levels", response_model=LevelTableResponse)
async def replace_levels(request: LevelTableUpdate, db: DbSession, operator: AdminOperator):
    """Replace the level threshold table."""
    table = await LevelTableService(db).replace_table(
        [(entry.level, entry.required_experience) for entry in request.levels]
    )
    return {
        "levels": [{"level": lvl, "required_experience": exp} for lvl, exp in table],
        "is_default": False,
    }
