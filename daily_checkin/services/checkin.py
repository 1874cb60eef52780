"""Check-in allocation service.

One call to ``CheckinService.checkin`` is one transaction:

    existing record? -> ALREADY_CHECKED_IN
    lock user, compute streak and reward
    insert CheckInRecord (unique per user and day)
    claim a code, or enqueue a PendingDistribution
    update counters and level
    commit

A lost race on the (user, day) unique key re-reads the winner's record.
Transient database errors roll the whole unit back and retry.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from daily_checkin.config import Settings, get_settings
from daily_checkin.engine.levels import check_level_up, next_level_threshold
from daily_checkin.engine.reward import RewardPolicy
from daily_checkin.engine.streak import (
    compute_streak,
    current_streak,
    month_bounds,
    reporting_today,
)
from daily_checkin.engine.types import (
    CheckinResult,
    CheckinStatus,
    DistributionType,
)
from daily_checkin.logging_config import get_logger
from daily_checkin.middleware.prometheus import record_checkin, record_checkin_retry
from daily_checkin.middleware.sentry import capture_allocation_error
from daily_checkin.models.checkin import CheckInRecord
from daily_checkin.models.code import RedemptionCode
from daily_checkin.models.pending import PendingDistribution
from daily_checkin.models.user import User
from daily_checkin.services.cache import StatusCache
from daily_checkin.services.inventory import InventoryStore
from daily_checkin.services.levels import LevelTableService
from daily_checkin.utils.errors import (
    CheckinRetryableError,
    InvalidRequestError,
    MalformedUserStateError,
    UserNotFoundError,
)
from daily_checkin.utils.pagination import pagination_meta

logger = get_logger(__name__)

_NON_NEGATIVE_COUNTERS = (
    "experience",
    "total_checkins",
    "consecutive_checkins",
    "max_consecutive",
)


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, OperationalError):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


def _log_retry(user_id: str, today: date):
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        orig = getattr(error, "orig", None)
        record_checkin_retry()
        logger.warning(
            "checkin_transient_failure",
            user_id=user_id,
            check_in_date=today.isoformat(),
            attempt=retry_state.attempt_number,
            error=type(orig).__name__ if orig is not None else type(error).__name__,
        )

    return before_sleep


class CheckinService:
    """Daily check-in allocation and read models."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        cache: StatusCache | None = None,
        policy: RewardPolicy | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.policy = policy or RewardPolicy.from_settings(self.settings)
        self.cache = cache or StatusCache(None)
        self.inventory = InventoryStore(db, self.settings.claim_max_attempts)
        self.levels = LevelTableService(db)

    def today(self, now: datetime | None = None) -> date:
        """Reporting day for ``now`` (defaults to the current time)."""
        return reporting_today(
            now or datetime.now(timezone.utc),
            self.settings.reporting_utc_offset_hours,
        )

    # =========================================================================
    # Allocation
    # =========================================================================

    async def checkin(self, user_id: str, now: datetime | None = None) -> CheckinResult:
        """Check ``user_id`` in for the reporting day containing ``now``.

        Returns:
            CheckinResult with status COMPLETED, PENDING_DISTRIBUTION or
            ALREADY_CHECKED_IN (the stored result of the first check-in)

        Raises:
            UserNotFoundError: If the user does not exist
            MalformedUserStateError: If stored counters are invalid
            CheckinRetryableError: If transient errors outlast the retries
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        today = self.today(now)
        now = now.astimezone(timezone.utc)
        max_retries = self.settings.checkin_max_retries

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=0.05, max=self.settings.checkin_retry_max_wait),
            retry=retry_if_exception(_is_transient),
            before_sleep=_log_retry(user_id, today),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    result = await self._attempt(user_id, today, now)
        except DBAPIError as e:
            if not _is_transient(e):
                raise
            capture_allocation_error(
                e,
                user_id=user_id,
                check_in_date=today.isoformat(),
                extra={"attempts": max_retries},
            )
            logger.error(
                "checkin_retries_exhausted",
                user_id=user_id,
                check_in_date=today.isoformat(),
                attempts=max_retries,
            )
            raise CheckinRetryableError(max_retries, type(e).__name__) from e

        record_checkin(result.status.value)
        if result.is_new:
            await self.cache.invalidate(user_id, today)
        return result

    async def _attempt(self, user_id: str, today: date, now: datetime) -> CheckinResult:
        try:
            return await self._checkin_once(user_id, today, now)
        except (DBAPIError, UserNotFoundError, MalformedUserStateError):
            await self.db.rollback()
            raise

    async def _checkin_once(self, user_id: str, today: date, now: datetime) -> CheckinResult:
        existing = await self._get_record(user_id, today)
        if existing is not None:
            return await self._already_checked_in(existing)

        user = await self._lock_user(user_id)
        self._validate_user_state(user)

        consecutive = compute_streak(user.last_checkin_date, today, user.consecutive_checkins)
        reward = self.policy.compute(consecutive, user.current_level)

        record = CheckInRecord(
            user_id=user_id,
            check_in_date=today,
            checked_at=now,
            consecutive_days=consecutive,
            base_exp=reward.base_exp,
            level_bonus_exp=reward.level_bonus_exp,
            streak_bonus_exp=reward.streak_bonus_exp,
            total_exp=reward.total_exp,
            code_amount=reward.code_amount,
            status=CheckinStatus.COMPLETED.value,
        )
        self.db.add(record)
        try:
            await self.db.flush()
        except IntegrityError:
            # Another request inserted today's record first
            await self.db.rollback()
            winner = await self._get_record(user_id, today)
            if winner is None:
                raise
            logger.info("checkin_race_lost", user_id=user_id, check_in_date=today.isoformat())
            return await self._already_checked_in(winner)

        code = await self.inventory.try_claim_code(
            user_id,
            DistributionType.CHECKIN,
            now=now,
        )
        if code is not None:
            record.redemption_code_id = code.id
            record.redemption_code = code.code
            user.total_amount = (user.total_amount or Decimal("0")) + code.amount
            status = CheckinStatus.COMPLETED
        else:
            record.status = CheckinStatus.PENDING_DISTRIBUTION.value
            self.db.add(
                PendingDistribution(
                    user_id=user_id,
                    check_in_id=record.id,
                    check_in_date=today,
                    computed_amount=reward.code_amount,
                    created_at=now,
                )
            )
            status = CheckinStatus.PENDING_DISTRIBUTION

        from_level = user.current_level
        user.experience += reward.total_exp
        user.total_checkins += 1
        user.consecutive_checkins = consecutive
        user.max_consecutive = max(user.max_consecutive, consecutive)
        user.last_checkin_date = today

        level_table = await self.levels.get_table()
        level_up = check_level_up(from_level, user.experience, level_table)
        if level_up is not None:
            user.current_level = level_up.to_level

        await self.db.commit()

        if status is CheckinStatus.COMPLETED:
            logger.info(
                "checkin_completed",
                user_id=user_id,
                check_in_date=today.isoformat(),
                consecutive_days=consecutive,
                experience_gained=reward.total_exp,
                code=code.code,
            )
        else:
            logger.warning(
                "checkin_pending_distribution",
                user_id=user_id,
                check_in_date=today.isoformat(),
                owed_amount=str(reward.code_amount),
            )
        if level_up is not None:
            logger.info(
                "level_up",
                user_id=user_id,
                from_level=level_up.from_level,
                to_level=level_up.to_level,
                levels_gained=level_up.levels_gained,
            )

        return CheckinResult(
            status=status,
            check_in_date=today,
            experience_gained=reward.total_exp,
            consecutive_days=consecutive,
            code=code.code if code is not None else None,
            code_amount=Decimal(code.amount) if code is not None else reward.code_amount,
            reward=reward,
            level_up=level_up,
            current_level=user.current_level,
            experience=user.experience,
        )

    async def _get_record(self, user_id: str, day: date) -> CheckInRecord | None:
        result = await self.db.execute(
            select(CheckInRecord)
            .where(
                CheckInRecord.user_id == user_id,
                CheckInRecord.check_in_date == day,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _get_user(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def _lock_user(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    @staticmethod
    def _validate_user_state(user: User) -> None:
        for field in _NON_NEGATIVE_COUNTERS:
            value = getattr(user, field)
            if value is None or value < 0:
                raise MalformedUserStateError(user.id, field, value)
        if user.current_level is None or user.current_level < 1:
            raise MalformedUserStateError(user.id, "current_level", user.current_level)

    async def _already_checked_in(self, record: CheckInRecord) -> CheckinResult:
        amount = await self._record_amount(record)
        user = await self.db.get(User, record.user_id)
        return CheckinResult(
            status=CheckinStatus.ALREADY_CHECKED_IN,
            check_in_date=record.check_in_date,
            experience_gained=record.total_exp,
            consecutive_days=record.consecutive_days,
            code=record.redemption_code,
            code_amount=amount,
            reward=record.reward,
            current_level=user.current_level if user else None,
            experience=user.experience if user else None,
            extra={"recordStatus": record.status},
        )

    async def _record_amount(self, record: CheckInRecord) -> Decimal:
        """Face value of the record's code, or the owed amount while pending."""
        if record.redemption_code_id is None:
            return Decimal(record.code_amount)
        result = await self.db.execute(
            select(RedemptionCode.amount).where(RedemptionCode.id == record.redemption_code_id)
        )
        amount = result.scalar_one_or_none()
        return Decimal(amount) if amount is not None else Decimal(record.code_amount)

    # =========================================================================
    # Read models
    # =========================================================================

    async def get_checkin_status(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Today's record (if any) plus running counters. Read-only."""
        today = self.today(now)

        cached = await self.cache.get(user_id, today)
        if cached is not None:
            return cached

        user = await self._get_user(user_id)
        record = await self._get_record(user_id, today)

        last_30 = await self.db.execute(
            select(func.count(CheckInRecord.id)).where(
                CheckInRecord.user_id == user_id,
                CheckInRecord.check_in_date > today - timedelta(days=30),
                CheckInRecord.check_in_date <= today,
            )
        )
        codes = await self.db.execute(
            select(
                func.count(RedemptionCode.id),
                func.coalesce(func.sum(RedemptionCode.amount), 0),
            ).where(RedemptionCode.distributed_to == user_id)
        )
        code_count, total_amount = codes.one()

        streak = current_streak(user.last_checkin_date, today, user.consecutive_checkins)
        next_bonus = self.policy.next_bonus(streak)
        level_table = await self.levels.get_table()
        next_level = next_level_threshold(user.current_level, level_table)

        status = {
            "checked_in": record is not None,
            "today": today.isoformat(),
            "record": (
                self._record_dict(record, await self._record_amount(record))
                if record is not None
                else None
            ),
            "stats": {
                "total_checkins": user.total_checkins,
                "consecutive_checkins": streak,
                "max_consecutive": user.max_consecutive,
                "experience": user.experience,
                "level": user.current_level,
                "last_checkin_date": (
                    user.last_checkin_date.isoformat() if user.last_checkin_date else None
                ),
                "last_30_days": last_30.scalar_one(),
                "code_count": code_count,
                "total_amount": str(Decimal(total_amount).quantize(Decimal("0.01"))),
            },
            "next_bonus": (
                {
                    "days_remaining": next_bonus[0],
                    "threshold": next_bonus[1],
                    "bonus": str(next_bonus[2]),
                }
                if next_bonus is not None
                else None
            ),
            "next_level": (
                {"level": next_level[0], "required_experience": next_level[1]}
                if next_level is not None
                else None
            ),
        }

        # No record but last_checkin_date == today: a check-in committed
        # between the two reads, so this projection is already stale
        if record is not None:
            await self.cache.set(user_id, today, status)
        elif user.last_checkin_date != today:
            await self.cache.set(user_id, today, status, ttl=self.cache.unchecked_ttl)
        return status

    async def get_checkin_history(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 30,
    ) -> dict[str, Any]:
        """Paginated check-in records, newest first."""
        if page < 1 or not 1 <= limit <= 100:
            raise InvalidRequestError(
                "page must be >= 1 and limit between 1 and 100",
                {"page": page, "limit": limit},
            )

        total_result = await self.db.execute(
            select(func.count(CheckInRecord.id)).where(CheckInRecord.user_id == user_id)
        )
        total = total_result.scalar_one()

        result = await self.db.execute(
            select(CheckInRecord, RedemptionCode.amount)
            .outerjoin(RedemptionCode, RedemptionCode.id == CheckInRecord.redemption_code_id)
            .where(CheckInRecord.user_id == user_id)
            .order_by(CheckInRecord.check_in_date.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = [
            self._record_dict(
                record,
                Decimal(amount) if amount is not None else Decimal(record.code_amount),
            )
            for record, amount in result.all()
        ]
        return {
            "items": items,
            "pagination": pagination_meta(page, limit, total),
        }

    async def get_calendar(
        self,
        user_id: str,
        year: int | None = None,
        month: int | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Checked-in days of one calendar month.

        A missing year or month is taken from the reporting day of ``now``.
        """
        if year is None or month is None:
            today = self.today(now)
            year = today.year if year is None else year
            month = today.month if month is None else month
        if not 2020 <= year <= 2100 or not 1 <= month <= 12:
            raise InvalidRequestError(
                "year must be between 2020 and 2100 and month between 1 and 12",
                {"year": year, "month": month},
            )

        first_day, last_day = month_bounds(year, month)
        result = await self.db.execute(
            select(CheckInRecord.check_in_date, CheckInRecord.status)
            .where(
                CheckInRecord.user_id == user_id,
                CheckInRecord.check_in_date >= first_day,
                CheckInRecord.check_in_date <= last_day,
            )
            .order_by(CheckInRecord.check_in_date)
        )
        days = [
            {"date": day.isoformat(), "status": status}
            for day, status in result.all()
        ]
        return {
            "year": year,
            "month": month,
            "first_day": first_day.isoformat(),
            "last_day": last_day.isoformat(),
            "days": days,
            "count": len(days),
        }

    @staticmethod
    def _record_dict(record: CheckInRecord, amount: Decimal) -> dict[str, Any]:
        return {
            "id": record.id,
            "date": record.check_in_date.isoformat(),
            "consecutive_days": record.consecutive_days,
            "reward": record.reward.to_dict(),
            "status": record.status,
            "code": record.redemption_code,
            "amount": str(amount),
            "checked_at": record.checked_at.isoformat() if record.checked_at else None,
        }

