from typing import Optional
from datetime import datetime, time
from sqlalchemy import DateTime, Enum as SQLEnum, Integer, String, Text, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from walkplanner.db.database import Base
from walkplanner.core.enums import TimeBlock, WorkDay


class SlotTemplates(Base):
    __tablename__ = "slot_templates"

    id: Mapped[str] = mapped_column(String(5), primary_key=True)  # e.g. "LU-B1"
    day: Mapped[WorkDay] = mapped_column(SQLEnum(WorkDay, name="work_day_enum"), nullable=False)
    block: Mapped[TimeBlock] = mapped_column(SQLEnum(TimeBlock, name="time_block_enum"), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    pickup_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    walk_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    return_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    default_sector: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    default_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("day", "block", name="uix_slot_templates_day_block"),
    )
