"""Redemption code inventory models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from daily_checkin.models.base import Base, utcnow


class BatchSource(str, Enum):
    """How a batch of codes entered the inventory."""

    UPLOAD = "upload"
    GENERATE = "generate"


class UploadBatch(Base):
    """One admin upload or generation run."""

    __tablename__ = "upload_batches"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source: Mapped[str] = mapped_column(
        String(20),
        default=BatchSource.UPLOAD.value,
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Counts from parsing
    total_codes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    valid_codes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    duplicate_codes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    invalid_codes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    uploaded_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UploadBatch {self.id} {self.valid_codes}x{self.amount}>"


class RedemptionCode(Base):
    """A voucher with a face value.

    Lifecycle: undistributed -> distributed (owner set) -> optionally used.
    ``is_distributed`` only ever goes from False to True, through a
    conditional update in the inventory store.
    """

    __tablename__ = "redemption_codes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    batch_id: Mapped[int | None] = mapped_column(
        ForeignKey("upload_batches.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Distribution
    is_distributed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    distributed_to: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    distributed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    # checkin | gift | batch | pending_resolve
    distribution_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Redemption happens outside this service
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    used_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_codes_available", "is_distributed", "is_used", "id"),
        Index("ix_codes_amount", "amount"),
    )

    def __repr__(self) -> str:
        return f"<RedemptionCode {self.code} {self.amount}>"
