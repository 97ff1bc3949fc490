from typing import Optional
from datetime import datetime
from sqlalchemy import JSON, Boolean, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from walkplanner.db.database import Base
from walkplanner.core.enums import RoutineTier, TimePreference, WalkType


class DogRoutines(Base):
    __tablename__ = "dog_routines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dog_id: Mapped[int] = mapped_column(Integer, ForeignKey("dogs.id", ondelete="CASCADE"), unique=True, nullable=False)
    tier: Mapped[RoutineTier] = mapped_column(SQLEnum(RoutineTier, name="routine_tier_enum"), nullable=False, default=RoutineTier.ON_DEMAND)
    sector: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    time_preference: Mapped[TimePreference] = mapped_column(SQLEnum(TimePreference, name="time_preference_enum"), nullable=False, default=TimePreference.INDIFFERENT)
    preferred_days: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # day codes, empty = any
    walk_type_preference: Mapped[WalkType] = mapped_column(SQLEnum(WalkType, name="walk_type_enum"), nullable=False, default=WalkType.COLLECTIVE)
    behavior_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    special_requirements: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
