"""Level threshold model."""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from daily_checkin.models.base import Base


class LevelThreshold(Base):
    """Experience required to reach a level."""

    __tablename__ = "level_thresholds"

    level: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    required_experience: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<LevelThreshold {self.level}: {self.required_experience}>"
