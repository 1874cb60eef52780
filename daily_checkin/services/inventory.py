"""Code inventory store.

Claims are exactly-once: a candidate is picked, then taken with a
conditional UPDATE that only matches while the code is still undistributed.
A zero rowcount means another transaction won the race, so the next
candidate is tried.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from daily_checkin.config import get_settings
from daily_checkin.engine.types import DistributionType
from daily_checkin.logging_config import get_logger
from daily_checkin.middleware.prometheus import (
    record_claim_conflict,
    record_code_claimed,
    update_inventory_available,
)
from daily_checkin.models.code import RedemptionCode

logger = get_logger(__name__)


class InventoryStore:
    """Redemption code pool backed by the ``redemption_codes`` table.

    Claims run inside the caller's transaction; nothing here commits.
    """

    def __init__(self, db: AsyncSession, max_attempts: int | None = None):
        self.db = db
        self.max_attempts = max_attempts or get_settings().claim_max_attempts

    def _available_filter(self, amount: Decimal | None = None) -> list[Any]:
        conditions = [
            RedemptionCode.is_distributed.is_(False),
            RedemptionCode.is_used.is_(False),
        ]
        if amount is not None:
            conditions.append(RedemptionCode.amount == amount)
        return conditions

    async def try_claim_code(
        self,
        user_id: str,
        distribution_type: DistributionType = DistributionType.CHECKIN,
        amount: Decimal | None = None,
        now: datetime | None = None,
    ) -> RedemptionCode | None:
        """Claim one available code for ``user_id``.

        Check-ins pass no ``amount``: any available code is taken, oldest
        first, and its own amount is what the user receives. Admin gifts
        may restrict the claim to one amount tier.

        Returns:
            The claimed code, or None when no code is available
        """
        claimed_at = now or datetime.now(timezone.utc)
        skipped: list[int] = []

        for attempt in range(1, self.max_attempts + 1):
            stmt = (
                select(RedemptionCode.id)
                .where(*self._available_filter(amount))
                .order_by(RedemptionCode.id)
                .limit(1)
                .with_for_update(skip_locked=True)
            )
            if skipped:
                stmt = stmt.where(RedemptionCode.id.not_in(skipped))
            code_id = (await self.db.execute(stmt)).scalar_one_or_none()
            if code_id is None:
                return None

            result = await self.db.execute(
                update(RedemptionCode)
                .where(
                    RedemptionCode.id == code_id,
                    RedemptionCode.is_distributed.is_(False),
                )
                .values(
                    is_distributed=True,
                    distributed_to=user_id,
                    distributed_at=claimed_at,
                    distribution_type=distribution_type.value,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                record_code_claimed(distribution_type.value)
                return await self.db.get(RedemptionCode, code_id, populate_existing=True)

            skipped.append(code_id)
            record_claim_conflict()
            logger.info(
                "code_claim_conflict",
                code_id=code_id,
                user_id=user_id,
                attempt=attempt,
            )

        logger.warning(
            "code_claim_exhausted_attempts",
            user_id=user_id,
            attempts=self.max_attempts,
        )
        return None

    async def count_available(self, amount: Decimal | None = None) -> int:
        """Number of codes that can still be claimed."""
        result = await self.db.execute(
            select(func.count(RedemptionCode.id)).where(*self._available_filter(amount))
        )
        count = result.scalar_one()
        if amount is None:
            update_inventory_available(count)
        return count

    async def inventory_by_amount(self) -> list[dict[str, Any]]:
        """Per-amount totals, smallest amount first."""
        available = case(
            (
                (RedemptionCode.is_distributed.is_(False))
                & (RedemptionCode.is_used.is_(False)),
                1,
            ),
            else_=0,
        )
        distributed = case((RedemptionCode.is_distributed.is_(True), 1), else_=0)
        result = await self.db.execute(
            select(
                RedemptionCode.amount,
                func.count(RedemptionCode.id),
                func.sum(available),
                func.sum(distributed),
            )
            .group_by(RedemptionCode.amount)
            .order_by(RedemptionCode.amount)
        )
        return [
            {
                "amount": Decimal(amount),
                "total": total,
                "available": int(avail or 0),
                "distributed": int(dist or 0),
            }
            for amount, total, avail, dist in result.all()
        ]
