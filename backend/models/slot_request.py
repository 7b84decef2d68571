"""Slot request intake model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from backend.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SlotRequest(Base):
    """Scholar intake details captured alongside a booking."""
    __tablename__ = "slot_requests"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=True)
    scholar_name = Column(String, nullable=False)
    emp_id = Column(String, nullable=False)
    registration = Column(String, nullable=False)
    meeting_type = Column(String, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
