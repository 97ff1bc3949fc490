from typing import Optional
from datetime import date, datetime, time
from decimal import Decimal
from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, Numeric, String, Text, Time, func
from sqlalchemy.orm import Mapped, mapped_column

from walkplanner.db.database import Base
from walkplanner.core.enums import AbsenceType, CancellationPolicy


class VacationPeriods(Base):
    __tablename__ = "vacation_periods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dog_id: Mapped[int] = mapped_column(Integer, ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[AbsenceType] = mapped_column(SQLEnum(AbsenceType, name="absence_type_enum"), nullable=False, default=AbsenceType.OWNER_VACATION)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_vacation_periods_dates"),
        Index("ix_vacation_periods_dates", "start_date", "end_date"),
    )


class AbsenceRecords(Base):
    """A cancelled walk: where it was, why, and what the owner is charged."""
    __tablename__ = "absence_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dog_id: Mapped[int] = mapped_column(Integer, ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False, index=True)
    slot_id: Mapped[str] = mapped_column(String(5), ForeignKey("slot_templates.id", ondelete="CASCADE"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    walk_date: Mapped[date] = mapped_column(Date, nullable=False)
    walk_time: Mapped[time] = mapped_column(Time, nullable=False)
    absence_type: Mapped[AbsenceType] = mapped_column(SQLEnum(AbsenceType, name="absence_type_enum"), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    policy: Mapped[CancellationPolicy] = mapped_column(SQLEnum(CancellationPolicy, name="cancellation_policy_enum"), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    charge_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    charge_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    vacation_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("vacation_periods.id", ondelete="SET NULL"), nullable=True)
    rescheduled_slot_id: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    rescheduled_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rescheduled_week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_absence_records_year_week", "year", "week"),
    )
