"""Redemption code history for the owning user."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_checkin.models.code import RedemptionCode
from daily_checkin.utils.errors import CodeNotFoundError, InvalidRequestError
from daily_checkin.utils.pagination import pagination_meta
from daily_checkin.utils.sql import LIKE_ESCAPE, contains_pattern

SEARCH_MIN_LENGTH = 3
SEARCH_LIMIT = 20


class CodeHistoryService:
    """Browse and search the codes distributed to a user."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_codes(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        """Codes owned by ``user_id``, newest first."""
        if page < 1 or not 1 <= limit <= 100:
            raise InvalidRequestError(
                "page must be >= 1 and limit between 1 and 100",
                {"page": page, "limit": limit},
            )

        total_result = await self.db.execute(
            select(func.count(RedemptionCode.id)).where(RedemptionCode.distributed_to == user_id)
        )
        total = total_result.scalar_one()

        result = await self.db.execute(
            select(RedemptionCode)
            .where(RedemptionCode.distributed_to == user_id)
            .order_by(RedemptionCode.distributed_at.desc(), RedemptionCode.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "items": [self._code_dict(code) for code in result.scalars().all()],
            "pagination": pagination_meta(page, limit, total),
        }

    async def search_codes(self, user_id: str, query: str) -> list[dict[str, Any]]:
        """Up to 20 of the user's codes containing ``query``."""
        query = (query or "").strip()
        if len(query) < SEARCH_MIN_LENGTH:
            raise InvalidRequestError(
                f"Search query must be at least {SEARCH_MIN_LENGTH} characters",
                {"minLength": SEARCH_MIN_LENGTH},
            )

        pattern = contains_pattern(query)
        result = await self.db.execute(
            select(RedemptionCode)
            .where(
                RedemptionCode.distributed_to == user_id,
                RedemptionCode.code.like(pattern, escape=LIKE_ESCAPE),
            )
            .order_by(RedemptionCode.distributed_at.desc(), RedemptionCode.id.desc())
            .limit(SEARCH_LIMIT)
        )
        return [self._code_dict(code) for code in result.scalars().all()]

    async def get_code(self, user_id: str, code_id: int) -> dict[str, Any]:
        """One code, only if it belongs to ``user_id``."""
        result = await self.db.execute(
            select(RedemptionCode).where(
                RedemptionCode.id == code_id,
                RedemptionCode.distributed_to == user_id,
            )
        )
        code = result.scalar_one_or_none()
        if code is None:
            raise CodeNotFoundError(code_id)
        return self._code_dict(code)

    @staticmethod
    def _code_dict(code: RedemptionCode) -> dict[str, Any]:
        return {
            "id": code.id,
            "code": code.code,
            "amount": str(code.amount),
            "distribution_type": code.distribution_type,
            "distributed_at": code.distributed_at.isoformat() if code.distributed_at else None,
            "is_used": code.is_used,
            "used_at": code.used_at.isoformat() if code.used_at else None,
        }
