"""Level threshold table service."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_checkin.engine.levels import DEFAULT_LEVEL_TABLE, validate_level_table
from daily_checkin.logging_config import get_logger
from daily_checkin.models.level import LevelThreshold
from daily_checkin.utils.errors import InvalidLevelTableError

logger = get_logger(__name__)


class LevelTableService:
    """Reads and replaces the (level, required experience) table.

    An empty table falls back to the built-in default.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_table(self) -> list[tuple[int, int]]:
        result = await self.db.execute(
            select(LevelThreshold.level, LevelThreshold.required_experience)
            .order_by(LevelThreshold.level)
        )
        rows = [(level, required) for level, required in result.all()]
        return rows or list(DEFAULT_LEVEL_TABLE)

    async def is_default(self) -> bool:
        result = await self.db.execute(select(LevelThreshold.level).limit(1))
        return result.scalar_one_or_none() is None

    async def replace_table(self, table: list[tuple[int, int]]) -> list[tuple[int, int]]:
        """Validate and store a new table.

        Raises:
            InvalidLevelTableError: If the table is inconsistent
        """
        problems = validate_level_table(table)
        if problems:
            raise InvalidLevelTableError("; ".join(problems))

        ordered = sorted(table)
        await self.db.execute(delete(LevelThreshold))
        self.db.add_all(
            LevelThreshold(level=level, required_experience=required)
            for level, required in ordered
        )
        await self.db.commit()

        logger.info("level_table_replaced", levels=len(ordered), top_level=ordered[-1][0])
        return ordered
