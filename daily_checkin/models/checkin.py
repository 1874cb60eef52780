"""Check-in record model."""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from daily_checkin.engine.types import CheckinStatus, RewardBreakdown
from daily_checkin.models.base import Base, utcnow

if TYPE_CHECKING:
    from daily_checkin.models.user import User


class CheckInRecord(Base):
    """One check-in per user per reporting day."""

    __tablename__ = "check_ins"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    check_in_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Reporting day (UTC+8)",
    )
    checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Streak length including this check-in
    consecutive_days: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Reward breakdown
    base_exp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level_bonus_exp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    streak_bonus_exp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_exp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    code_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # completed | pending_distribution
    status: Mapped[str] = mapped_column(
        String(30),
        default=CheckinStatus.COMPLETED.value,
        nullable=False,
    )

    # Null while pending distribution
    redemption_code_id: Mapped[int | None] = mapped_column(
        ForeignKey("redemption_codes.id", ondelete="SET NULL"),
        nullable=True,
    )
    redemption_code: Mapped[str | None] = mapped_column(String(64), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="checkins")

    __table_args__ = (
        UniqueConstraint("user_id", "check_in_date", name="uq_user_checkin_date"),
        Index("ix_checkin_date", "check_in_date"),
    )

    @property
    def reward(self) -> RewardBreakdown:
        return RewardBreakdown(
            base_exp=self.base_exp,
            level_bonus_exp=self.level_bonus_exp,
            streak_bonus_exp=self.streak_bonus_exp,
            total_exp=self.total_exp,
            code_amount=Decimal(self.code_amount),
        )

    def __repr__(self) -> str:
        return f"<CheckInRecord user={self.user_id} date={self.check_in_date} status={self.status}>"
