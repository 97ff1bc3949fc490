from typing import Optional
from datetime import datetime
from sqlalchemy import Boolean, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from walkplanner.db.database import Base
from walkplanner.core.enums import WalkType


class WeekOverrides(Base):
    __tablename__ = "week_overrides"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slot_id: Mapped[str] = mapped_column(String(5), ForeignKey("slot_templates.id", ondelete="CASCADE"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)  # ISO week 1-53
    # null = use the template default
    walk_type: Mapped[Optional[WalkType]] = mapped_column(SQLEnum(WalkType, name="walk_type_enum"), nullable=True)
    sector: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    block_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("slot_id", "year", "week", name="uix_week_overrides_slot_week"),
        Index("ix_week_overrides_year_week", "year", "week"),
    )
