"""Admin distribution audit log."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from daily_checkin.models.base import Base, utcnow


class DistributionLog(Base):
    """Record of one gift, batch or pending-resolution run."""

    __tablename__ = "distribution_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # gift | batch | pending_resolve
    operation_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    operator: Mapped[str | None] = mapped_column(String(64), nullable=True)
    target_users: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    codes_distributed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    codes_failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<DistributionLog {self.operation_type} x{self.codes_distributed}>"
