"""Business logic services."""

from daily_checkin.services.cache import StatusCache
from daily_checkin.services.checkin import CheckinService
from daily_checkin.services.codes import CodeHistoryService
from daily_checkin.services.distribution import DistributionService
from daily_checkin.services.inventory import InventoryStore
from daily_checkin.services.levels import LevelTableService

__all__ = [
    "CheckinService",
    "CodeHistoryService",
    "DistributionService",
    "InventoryStore",
    "LevelTableService",
    "StatusCache",
]
