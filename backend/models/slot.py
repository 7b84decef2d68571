"""Slot model definitions."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, Time
from backend.database import Base

SLOT_AVAILABLE = "available"
SLOT_BOOKED = "booked"
SLOT_CANCELLED = "cancelled"
SLOT_STATUSES = (SLOT_AVAILABLE, SLOT_BOOKED, SLOT_CANCELLED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Slot(Base):
    """A discrete bookable interval; the unit of mutual exclusion for bookings."""
    __tablename__ = "faculty_slots"
    __table_args__ = (
        Index("faculty_slots_owner_interval_unique", "owner_id", "date", "start_time", "end_time", unique=True),
        Index("idx_faculty_slots_status_date", "status", "date", "start_time"),
        CheckConstraint("start_time < end_time", name="ck_faculty_slots_interval"),
        CheckConstraint(
            "status IN ('available', 'booked', 'cancelled')",
            name="ck_faculty_slots_status",
        ),
    )

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String, nullable=False, default=SLOT_AVAILABLE)
    availability_id = Column(Integer, ForeignKey("availability.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
