from typing import Optional
from datetime import date, datetime, time
from decimal import Decimal
from sqlalchemy import Date, DateTime, Integer, Numeric, String, Text, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from walkplanner.db.database import Base


class BillableWalks(Base):
    """Billing ledger line, one per walk actually done."""
    __tablename__ = "billable_walks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dog_id: Mapped[int] = mapped_column(Integer, nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    service_category: Mapped[str] = mapped_column(String(50), nullable=False)
    walk_date: Mapped[date] = mapped_column(Date, nullable=False)
    walk_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="done")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        # (dog, date, start time) is the natural key that makes sync at-most-once
        UniqueConstraint("dog_id", "walk_date", "walk_time", name="uix_billable_walks_natural_key"),
    )
