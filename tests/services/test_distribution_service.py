"""Tests for admin inventory and distribution operations."""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from daily_checkin.config import get_settings
from daily_checkin.engine.types import CheckinStatus
from daily_checkin.models import (
    CheckInRecord,
    DistributionLog,
    PendingDistribution,
    RedemptionCode,
    UploadBatch,
    User,
)
from daily_checkin.services.checkin import CheckinService
from daily_checkin.services.distribution import DistributionService
from daily_checkin.utils.errors import (
    InvalidCodesError,
    InvalidRequestError,
    InventoryError,
    UserNotFoundError,
)
from tests.conftest import add_codes, create_user

NOW =datetime(2024, 3, 10, 4, 0, tzinfo=timezone.utc)
GENERATED_CODE = re.compile(r"^KYX[A-Za-z0-9]{8}$")


async def _available(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count(RedemptionCode.id)).where(RedemptionCode.is_distributed.is_(False))
        )
        return result.scalar_one()


# =============================================================================
# Upload and Generation
# =============================================================================


class TestUploadCodes:
    """Tests for upload_codes."""

    @pytest.mark.asyncio
    async def test_counts_duplicates_and_invalid_tokens(self, db, session_factory):
        [existing] = await add_codes(session_factory, 1)
        content = f"KYXAAAA1111, KYXAAAA1111; bad!\nKYXBBBB2222  {existing}"

        result = await DistributionService(db).upload_codes(
            content, Decimal("2.00"), filename="codes.txt", operator="admin"
        )

        assert result["total"] == 5
        assert result["inserted"] == 2
        assert result["duplicates"] == 2
        assert result["invalid"] == 1
        assert result["invalid_samples"] == ["bad!"]

        async with session_factory() as session:
            batch = await session.get(UploadBatch, result["batch_id"])
            rows = (
                await session.execute(
                    select(RedemptionCode).where(RedemptionCode.batch_id == batch.id)
                )
            ).scalars().all()
        assert batch.filename == "codes.txt"
        assert batch.source == "upload"
        assert batch.uploaded_by == "admin"
        assert sorted(r.code for r in rows) == ["KYXAAAA1111", "KYXBBBB2222"]
        assert all(r.amount == Decimal("2.00") for r in rows)

    @pytest.mark.asyncio
    async def test_chinese_separators(self, db):
        result = await DistributionService(db).upload_codes(
            "KYXAAAA1111，KYXBBBB2222；KYXCCCC3333", Decimal("1.00")
        )

        assert result["inserted"] == 3

    @pytest.mark.asyncio
    async def test_no_valid_codes(self, db):
        with pytest.raises(InvalidCodesError):
            await DistributionService(db).upload_codes("a, b, !!", Decimal("1.00"))

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, db):
        with pytest.raises(InvalidRequestError):
            await DistributionService(db).upload_codes("KYXAAAA1111", Decimal("0"))


class TestGenerateCodes:
    """Tests for generate_codes."""

    @pytest.mark.asyncio
    async def test_generates_stored_codes(self, db, session_factory):
        result = await DistributionService(db).generate_codes(5, Decimal("2.50"), operator="admin")

        assert result["count"] == 5
        assert len(set(result["codes"])) == 5
        assert all(GENERATED_CODE.match(code) for code in result["codes"])
        assert await _available(session_factory) == 5

        async with session_factory() as session:
            batch = await session.get(UploadBatch, result["batch_id"])
        assert batch.source == "generate"
        assert batch.valid_codes == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, -1, 1001])
    async def test_count_out_of_range(self, db, count: int):
        with pytest.raises(InvalidRequestError):
            await DistributionService(db).generate_codes(count, Decimal("1.00"))


class TestInventorySummary:

    @pytest.mark.asyncio
    async def test_summary(self, db, session_factory):
        await add_codes(session_factory, 2, amount=Decimal("1.00"))
        await add_codes(session_factory, 1, amount=Decimal("3.00"), prefix="KYXTHREE")

        summary = await DistributionService(db).inventory_summary()

        assert summary["count_available"] == 3
        assert [row["amount"] for row in summary["amounts"]] == ["1.00", "3.00"]
        assert summary["amounts"][0]["available"] == 2


# =============================================================================
# Gifts and Batches
# =============================================================================


class TestGift:
    """Tests for gift."""

    @pytest.mark.asyncio
    async def test_each_user_gets_one_code_of_amount(self, db, session_factory):
        users = [await create_user(session_factory) for _ in range(2)]
        await add_codes(session_factory, 1, amount=Decimal("1.00"))
        await add_codes(session_factory, 3, amount=Decimal("2.00"), prefix="KYXGIFT")

        result = await DistributionService(db).gift(
            [u.id for u in users], Decimal("2.00"), message="thanks", operator="admin"
        )

        assert result["distribution_type"] == "gift"
        assert result["distributed"] == 2
        assert {item["user_id"] for item in result["items"]} == {u.id for u in users}
        assert all(item["amount"] == "2.00" for item in result["items"])

        async with session_factory() as session:
            for u in users:
                stored = await session.get(User, u.id)
                assert stored.total_amount == Decimal("2.00")
            log = (await session.execute(select(DistributionLog))).scalar_one()
        assert log.operation_type == "gift"
        assert log.notes == "thanks"
        assert log.codes_distributed == 2
        assert sorted(log.target_users) == sorted(u.id for u in users)

    @pytest.mark.asyncio
    async def test_duplicate_user_ids_count_once(self, db, session_factory, user):
        await add_codes(session_factory, 3)

        result = await DistributionService(db).gift([user.id, user.id], Decimal("1.00"))

        assert result["distributed"] == 1

    @pytest.mark.asyncio
    async def test_insufficient_inventory_distributes_nothing(self, db, session_factory):
        users = [await create_user(session_factory) for _ in range(2)]
        await add_codes(session_factory, 1, amount=Decimal("2.00"))
        await add_codes(session_factory, 5, amount=Decimal("1.00"), prefix="KYXSMALL")

        with pytest.raises(InventoryError) as exc_info:
            await DistributionService(db).gift([u.id for u in users], Decimal("2.00"))

        assert exc_info.value.details["required"] == 2
        assert exc_info.value.details["available"] == 1
        assert await _available(session_factory) == 6

    @pytest.mark.asyncio
    async def test_unknown_user(self, db, session_factory, user):
        await add_codes(session_factory, 2)

        with pytest.raises(UserNotFoundError):
            await DistributionService(db).gift([user.id, "missing"], Decimal("1.00"))

        assert await _available(session_factory) == 2


class TestBatchDistribute:
    """Tests for batch_distribute."""

    @pytest.mark.asyncio
    async def test_requires_confirmation(self, db, user):
        with pytest.raises(InvalidRequestError):
            await DistributionService(db).batch_distribute([user.id])

    @pytest.mark.asyncio
    async def test_batch_size_limit(self, db, session_factory):
        users = [await create_user(session_factory) for _ in range(3)]
        settings = get_settings().model_copy(update={"max_batch_size": 2})

        with pytest.raises(InvalidRequestError):
            await DistributionService(db, settings=settings).batch_distribute(
                [u.id for u in users], confirm=True
            )

    @pytest.mark.asyncio
    async def test_any_amount(self, db, session_factory):
        users = [await create_user(session_factory) for _ in range(2)]
        await add_codes(session_factory, 1, amount=Decimal("1.00"))
        await add_codes(session_factory, 1, amount=Decimal("3.00"), prefix="KYXTHREE")

        result = await DistributionService(db).batch_distribute(
            [u.id for u in users], confirm=True, operator="admin"
        )

        assert result["distribution_type"] == "batch"
        assert result["distributed"] == 2
        assert await _available(session_factory) == 0

    @pytest.mark.asyncio
    async def test_empty_user_list(self, db):
        with pytest.raises(InvalidRequestError):
            await DistributionService(db).batch_distribute([], confirm=True)


# =============================================================================
# Pending Resolution
# =============================================================================


async def _pending_checkins(session_factory, count: int) -> list[User]:
    """Check ``count`` users in against an empty pool, one minute apart."""
    users = []
    for i in range(count):
        u = await create_user(session_factory)
        async with session_factory() as session:
            result = await CheckinService(session).checkin(u.id, now=NOW + timedelta(minutes=i))
        assert result.status is CheckinStatus.PENDING_DISTRIBUTION
        users.append(u)
    return users


class TestResolvePending:
    """Tests for list_pending and resolve_pending."""

    @pytest.mark.asyncio
    async def test_list_pending_oldest_first(self, db, session_factory):
        users = await _pending_checkins(session_factory, 3)

        pending = await DistributionService(db).list_pending()

        assert pending["total"] == 3
        assert [item["user_id"] for item in pending["items"]] == [u.id for u in users]
        assert pending["items"][0]["computed_amount"] == "1.10"

    @pytest.mark.asyncio
    async def test_resolves_in_fifo_order(self, db, session_factory):
        users = await _pending_checkins(session_factory, 3)
        codes = await add_codes(session_factory, 2)

        result = await DistributionService(db).resolve_pending(operator="admin")

        assert result["resolved"] == 2
        assert result["remaining"] == 1
        assert [item["user_id"] for item in result["items"]] == [users[0].id, users[1].id]
        assert sorted(item["code"] for item in result["items"]) == sorted(codes)

        async with session_factory() as session:
            record = (
                await session.execute(
                    select(CheckInRecord).where(CheckInRecord.user_id == users[0].id)
                )
            ).scalar_one()
            entry = (
                await session.execute(
                    select(PendingDistribution).where(PendingDistribution.user_id == users[0].id)
                )
            ).scalar_one()
            stored = await session.get(User, users[0].id)
            code = (
                await session.execute(
                    select(RedemptionCode).where(RedemptionCode.code == record.redemption_code)
                )
            ).scalar_one()
        assert record.status == CheckinStatus.COMPLETED.value
        assert record.redemption_code_id == code.id
        assert entry.resolved is True
        assert entry.resolved_at is not None
        assert entry.redemption_code_id == code.id
        assert code.distributed_to == users[0].id
        assert code.distribution_type == "pending_resolve"
        assert stored.total_amount == Decimal("1.00")

    @pytest.mark.asyncio
    async def test_later_resolution_serves_the_rest(self, db, session_factory):
        users = await _pending_checkins(session_factory, 2)
        await add_codes(session_factory, 1)
        service = DistributionService(db)
        await service.resolve_pending()

        await add_codes(session_factory, 1, prefix="KYXLATE")
        result = await service.resolve_pending()

        assert [item["user_id"] for item in result["items"]] == [users[1].id]
        assert result["remaining"] == 0

    @pytest.mark.asyncio
    async def test_limit(self, db, session_factory):
        await _pending_checkins(session_factory, 3)
        await add_codes(session_factory, 3)

        result = await DistributionService(db).resolve_pending(limit=1)

        assert result["resolved"] == 1
        assert result["remaining"] == 2

    @pytest.mark.asyncio
    async def test_nothing_available(self, db, session_factory):
        await _pending_checkins(session_factory, 1)

        result = await DistributionService(db).resolve_pending()

        assert result == {"resolved": 0, "remaining": 1, "items": []}

    @pytest.mark.asyncio
    async def test_repeat_checkin_shows_resolved_code(self, db, session_factory):
        [u] = await _pending_checkins(session_factory, 1)
        [code] = await add_codes(session_factory, 1)
        await DistributionService(db).resolve_pending()

        async with session_factory() as session:
            again = await CheckinService(session).checkin(u.id, now=NOW)

        assert again.status is CheckinStatus.ALREADY_CHECKED_IN
        assert again.code == code
        assert again.code_amount == Decimal("1.00")
        assert again.extra == {"recordStatus": "completed"}
