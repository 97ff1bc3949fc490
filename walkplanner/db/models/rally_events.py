from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import Boolean, Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from walkplanner.db.database import Base
from walkplanner.core.enums import TimeBlock, WorkDay


class RallyEvents(Base):
    __tablename__ = "rally_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    day: Mapped[WorkDay] = mapped_column(SQLEnum(WorkDay, name="work_day_enum"), nullable=False)
    start_block: Mapped[TimeBlock] = mapped_column(SQLEnum(TimeBlock, name="time_block_enum"), nullable=False)  # B1 or B2
    duration_hours: Mapped[Decimal] = mapped_column(Numeric(4, 1), nullable=False, default=3)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price_per_dog: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class RallyParticipants(Base):
    __tablename__ = "rally_participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rally_id: Mapped[int] = mapped_column(Integer, ForeignKey("rally_events.id", ondelete="CASCADE"), nullable=False)
    dog_id: Mapped[int] = mapped_column(Integer, ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False)
    is_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("rally_id", "dog_id", name="uix_rally_participants_rally_dog"),
    )
