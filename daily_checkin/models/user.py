"""User model with check-in counters."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from daily_checkin.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from daily_checkin.models.checkin import CheckInRecord


class UserStatus(str, Enum):
    """User account status."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class User(Base, UUIDMixin, TimestampMixin):
    """User account.

    Counters are mutated only by the check-in service.
    """

    __tablename__ = "users"

    # Identity from the OAuth provider
    external_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=UserStatus.ACTIVE.value,
        nullable=False,
    )

    # Leveling
    current_level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Check-in counters
    total_checkins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    consecutive_checkins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Historical peak, may be below the current streak only transiently
    max_consecutive: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_checkin_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Reporting-day (UTC+8) of the last check-in",
    )

    # Sum of face values of codes received
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0.00"),
        nullable=False,
    )

    checkins: Mapped[list["CheckInRecord"]] = relationship(
        "CheckInRecord",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint("current_level >= 1", name="ck_users_level_positive"),
        CheckConstraint("experience >= 0", name="ck_users_experience_non_negative"),
        CheckConstraint("total_checkins >= 0", name="ck_users_total_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<User {self.username}>"
