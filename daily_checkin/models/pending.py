"""Pending distribution model."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from daily_checkin.models.base import Base, utcnow


class PendingDistribution(Base):
    """A check-in that is owed a code because inventory was empty.

    Resolved oldest first (created_at, then id).
    """

    __tablename__ = "pending_distributions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    check_in_id: Mapped[int] = mapped_column(
        ForeignKey("check_ins.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    computed_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    redemption_code_id: Mapped[int | None] = mapped_column(
        ForeignKey("redemption_codes.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_pending_queue", "resolved", "created_at", "id"),
    )

    def __repr__(self) -> str:
        return f"<PendingDistribution user={self.user_id} date={self.check_in_date} resolved={self.resolved}>"
