"""Admin inventory and distribution operations.

Uploads and generation add codes to the pool. Gifts, batch distribution
and pending resolution take codes out through the same exactly-once claim
the check-in path uses.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_checkin.config import Settings, get_settings
from daily_checkin.engine.streak import reporting_today
from daily_checkin.engine.types import CheckinStatus, DistributionType
from daily_checkin.logging_config import get_logger
from daily_checkin.middleware.prometheus import record_pending_resolved
from daily_checkin.models.checkin import CheckInRecord
from daily_checkin.models.code import BatchSource, RedemptionCode, UploadBatch
from daily_checkin.models.distribution_log import DistributionLog
from daily_checkin.models.pending import PendingDistribution
from daily_checkin.models.user import User
from daily_checkin.services.cache import StatusCache
from daily_checkin.services.inventory import InventoryStore
from daily_checkin.utils.codes import generate_unique_codes, parse_uploaded_codes
from daily_checkin.utils.errors import (
    InvalidCodesError,
    InvalidRequestError,
    InventoryError,
    UserNotFoundError,
)

logger = get_logger(__name__)

# Bound for IN (...) lists when checking existing codes
_LOOKUP_CHUNK = 500


class DistributionService:
    """Admin-side code inventory management."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        cache: StatusCache | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.cache = cache or StatusCache(None)
        self.inventory = InventoryStore(db, self.settings.claim_max_attempts)

    # =========================================================================
    # Stock
    # =========================================================================

    async def upload_codes(
        self,
        content: str,
        amount: Decimal,
        filename: str | None = None,
        operator: str | None = None,
    ) -> dict[str, Any]:
        """Add codes from uploaded text.

        Tokens are split on commas, semicolons and whitespace. Invalid
        tokens, repeats within the file and codes already stored are
        skipped and counted.

        Raises:
            InvalidRequestError: If amount is not positive
            InvalidCodesError: If the text holds no valid code
        """
        self._check_amount(amount)
        valid, invalid, total = parse_uploaded_codes(content)
        if not valid:
            raise InvalidCodesError()

        existing = await self._existing_codes(valid)
        new_codes = [code for code in valid if code not in existing]
        in_file_duplicates = total - len(invalid) - len(valid)

        batch = UploadBatch(
            filename=filename,
            source=BatchSource.UPLOAD.value,
            amount=amount,
            total_codes=total,
            valid_codes=len(new_codes),
            duplicate_codes=in_file_duplicates + len(existing),
            invalid_codes=len(invalid),
            uploaded_by=operator,
        )
        self.db.add(batch)
        await self.db.flush()

        self.db.add_all(
            RedemptionCode(code=code, amount=amount, batch_id=batch.id)
            for code in new_codes
        )
        await self.db.commit()

        logger.info(
            "codes_uploaded",
            batch_id=batch.id,
            amount=str(amount),
            inserted=len(new_codes),
            duplicates=batch.duplicate_codes,
            invalid=len(invalid),
        )
        return {
            "batch_id": batch.id,
            "amount": str(amount),
            "total": total,
            "inserted": len(new_codes),
            "duplicates": batch.duplicate_codes,
            "invalid": len(invalid),
            "invalid_samples": invalid[:10],
        }

    async def generate_codes(
        self,
        count: int,
        amount: Decimal,
        operator: str | None = None,
    ) -> dict[str, Any]:
        """Generate ``count`` new codes of one amount in a single batch."""
        if not 1 <= count <= self.settings.max_generate_count:
            raise InvalidRequestError(
                f"count must be between 1 and {self.settings.max_generate_count}",
                {"count": count},
            )
        self._check_amount(amount)

        codes = generate_unique_codes(count)
        clashes = await self._existing_codes(codes)
        while clashes:
            codes = [code for code in codes if code not in clashes]
            replacements = generate_unique_codes(count - len(codes), set(codes) | clashes)
            clashes = await self._existing_codes(replacements)
            codes.extend(replacements)

        batch = UploadBatch(
            source=BatchSource.GENERATE.value,
            amount=amount,
            total_codes=count,
            valid_codes=count,
            uploaded_by=operator,
        )
        self.db.add(batch)
        await self.db.flush()

        self.db.add_all(
            RedemptionCode(code=code, amount=amount, batch_id=batch.id) for code in codes
        )
        await self.db.commit()

        logger.info("codes_generated", batch_id=batch.id, count=count, amount=str(amount))
        return {
            "batch_id": batch.id,
            "amount": str(amount),
            "count": count,
            "codes": codes,
        }

    async def inventory_summary(self) -> dict[str, Any]:
        return {
            "amounts": [
                {**row, "amount": str(row["amount"])}
                for row in await self.inventory.inventory_by_amount()
            ],
            "count_available": await self.inventory.count_available(),
        }

    # =========================================================================
    # Distribution
    # =========================================================================

    async def gift(
        self,
        user_ids: list[str],
        amount: Decimal,
        message: str | None = None,
        operator: str | None = None,
    ) -> dict[str, Any]:
        """Give each user one code of ``amount``.

        Raises:
            InventoryError: If fewer codes of that amount are available
                than users; nothing is distributed in that case
        """
        self._check_amount(amount)
        return await self._distribute(
            user_ids,
            DistributionType.GIFT,
            amount=amount,
            notes=message,
            operator=operator,
        )

    async def batch_distribute(
        self,
        user_ids: list[str],
        amount: Decimal | None = None,
        confirm: bool = False,
        operator: str | None = None,
    ) -> dict[str, Any]:
        """Give each user one code, optionally of a single amount."""
        if not confirm:
            raise InvalidRequestError("Batch distribution requires confirm=true")
        if len(set(user_ids)) > self.settings.max_batch_size:
            raise InvalidRequestError(
                f"At most {self.settings.max_batch_size} users per batch",
                {"maxBatchSize": self.settings.max_batch_size},
            )
        if amount is not None:
            self._check_amount(amount)
        return await self._distribute(
            user_ids,
            DistributionType.BATCH,
            amount=amount,
            operator=operator,
        )

    async def _distribute(
        self,
        user_ids: list[str],
        distribution_type: DistributionType,
        amount: Decimal | None,
        notes: str | None = None,
        operator: str | None = None,
    ) -> dict[str, Any]:
        targets = list(dict.fromkeys(user_ids))
        if not targets:
            raise InvalidRequestError("At least one user is required")

        users = await self._load_users(targets)

        available = await self.inventory.count_available(amount)
        if available < len(targets):
            raise InventoryError(len(targets), available, amount)

        now = datetime.now(timezone.utc)
        distributed: list[dict[str, Any]] = []
        for user_id in targets:
            code = await self.inventory.try_claim_code(
                user_id,
                distribution_type,
                amount=amount,
                now=now,
            )
            if code is None:
                # Stock taken by concurrent claimants after the count
                await self.db.rollback()
                raise InventoryError(len(targets), len(distributed), amount)
            user = users[user_id]
            user.total_amount = (user.total_amount or Decimal("0")) + code.amount
            distributed.append({"user_id": user_id, "code": code.code, "amount": str(code.amount)})

        self.db.add(
            DistributionLog(
                operation_type=distribution_type.value,
                operator=operator,
                target_users=targets,
                amount=amount,
                codes_distributed=len(distributed),
                codes_failed=0,
                notes=notes,
            )
        )
        await self.db.commit()

        today = self._today()
        for user_id in targets:
            await self.cache.invalidate(user_id, today)

        logger.info(
            "codes_distributed",
            distribution_type=distribution_type.value,
            users=len(targets),
            amount=str(amount) if amount is not None else None,
            operator=operator,
        )
        return {
            "distribution_type": distribution_type.value,
            "distributed": len(distributed),
            "items": distributed,
        }

    # =========================================================================
    # Pending distributions
    # =========================================================================

    async def list_pending(self, limit: int = 100) -> dict[str, Any]:
        """Unresolved pending entries, oldest first."""
        result = await self.db.execute(
            select(PendingDistribution)
            .where(PendingDistribution.resolved.is_(False))
            .order_by(PendingDistribution.created_at, PendingDistribution.id)
            .limit(limit)
        )
        items = [self._pending_dict(entry) for entry in result.scalars().all()]
        return {
            "items": items,
            "total": await self.count_unresolved(),
        }

    async def resolve_pending(
        self,
        limit: int | None = None,
        operator: str | None = None,
    ) -> dict[str, Any]:
        """Assign available codes to unresolved entries, oldest first.

        Stops at the first entry no code can be found for, so a later
        entry is never served before an earlier one.
        """
        stmt = (
            select(PendingDistribution)
            .where(PendingDistribution.resolved.is_(False))
            .order_by(PendingDistribution.created_at, PendingDistribution.id)
            .with_for_update(skip_locked=True)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        entries = (await self.db.execute(stmt)).scalars().all()

        now = datetime.now(timezone.utc)
        resolved: list[dict[str, Any]] = []
        for entry in entries:
            code = await self.inventory.try_claim_code(
                entry.user_id,
                DistributionType.PENDING_RESOLVE,
                now=now,
            )
            if code is None:
                break

            entry.resolved = True
            entry.resolved_at = now
            entry.redemption_code_id = code.id

            record = await self.db.get(CheckInRecord, entry.check_in_id)
            if record is not None:
                record.redemption_code_id = code.id
                record.redemption_code = code.code
                record.status = CheckinStatus.COMPLETED.value

            user = await self.db.get(User, entry.user_id)
            if user is not None:
                user.total_amount = (user.total_amount or Decimal("0")) + code.amount

            resolved.append({
                "pending_id": entry.id,
                "user_id": entry.user_id,
                "check_in_date": entry.check_in_date.isoformat(),
                "code": code.code,
                "amount": str(code.amount),
            })

        if resolved:
            self.db.add(
                DistributionLog(
                    operation_type=DistributionType.PENDING_RESOLVE.value,
                    operator=operator,
                    target_users=[item["user_id"] for item in resolved],
                    codes_distributed=len(resolved),
                    codes_failed=len(entries) - len(resolved),
                )
            )
        await self.db.commit()

        today = self._today()
        for user_id in {item["user_id"] for item in resolved}:
            await self.cache.invalidate(user_id, today)

        remaining = await self.count_unresolved()
        record_pending_resolved(len(resolved))
        logger.info("pending_resolved", resolved=len(resolved), remaining=remaining)
        return {
            "resolved": len(resolved),
            "remaining": remaining,
            "items": resolved,
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    def _today(self) -> date:
        return reporting_today(
            datetime.now(timezone.utc),
            self.settings.reporting_utc_offset_hours,
        )

    @staticmethod
    def _check_amount(amount: Decimal) -> None:
        if amount is None or amount <= 0:
            raise InvalidRequestError("amount must be greater than 0", {"amount": str(amount)})

    async def _existing_codes(self, codes: list[str]) -> set[str]:
        existing: set[str] = set()
        for start in range(0, len(codes), _LOOKUP_CHUNK):
            chunk = codes[start:start + _LOOKUP_CHUNK]
            result = await self.db.execute(
                select(RedemptionCode.code).where(RedemptionCode.code.in_(chunk))
            )
            existing.update(result.scalars().all())
        return existing

    async def _load_users(self, user_ids: list[str]) -> dict[str, User]:
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        users = {user.id: user for user in result.scalars().all()}
        for user_id in user_ids:
            if user_id not in users:
                raise UserNotFoundError(user_id)
        return users

    async def count_unresolved(self) -> int:
        result = await self.db.execute(
            select(func.count(PendingDistribution.id)).where(
                PendingDistribution.resolved.is_(False)
            )
        )
        return result.scalar_one()

    @staticmethod
    def _pending_dict(entry: PendingDistribution) -> dict[str, Any]:
        return {
            "id": entry.id,
            "user_id": entry.user_id,
            "check_in_id": entry.check_in_id,
            "check_in_date": entry.check_in_date.isoformat(),
            "computed_amount": str(entry.computed_amount),
            "created_at": entry.created_at.isoformat() if entry.created_at else None,
        }
