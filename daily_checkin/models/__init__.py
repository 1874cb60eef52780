"""Database models."""

from daily_checkin.models.base import Base
from daily_checkin.models.checkin import CheckInRecord
from daily_checkin.models.code import BatchSource, RedemptionCode, UploadBatch
from daily_checkin.models.distribution_log import DistributionLog
from daily_checkin.models.level import LevelThreshold
from daily_checkin.models.pending import PendingDistribution
from daily_checkin.models.user import User, UserStatus

__all__ = [
    "Base",
    "User",
    "UserStatus",
    "CheckInRecord",
    "RedemptionCode",
    "UploadBatch",
    "BatchSource",
    "PendingDistribution",
    "LevelThreshold",
    "DistributionLog",
]
