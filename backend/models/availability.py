"""Availability model definitions."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Time
from backend.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Availability(Base):
    """A faculty-declared time window that is expanded into bookable slots once, on creation."""
    __tablename__ = "availability"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_availability_window"),
        CheckConstraint("slot_duration > 0", name="ck_availability_slot_duration"),
    )

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration = Column(Integer, nullable=False, default=30)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
