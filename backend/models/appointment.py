"""Appointment model definitions."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from backend.database import Base

APPOINTMENT_CONFIRMED = "confirmed"
APPOINTMENT_CANCELLED = "cancelled"
APPOINTMENT_COMPLETED = "completed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Appointment(Base):
    """Represents a booked meeting on exactly one slot."""
    __tablename__ = "appointments"
    __table_args__ = (
        # One booking per slot, ever. NULL references (deleted slots) do not collide.
        Index(
            "appointments_slot_id_unique_not_null",
            "slot_id",
            unique=True,
            postgresql_where=text("slot_id IS NOT NULL"),
            sqlite_where=text("slot_id IS NOT NULL"),
        ),
        Index("idx_appointments_time_range", "start_time", "end_time"),
        CheckConstraint(
            "status IN ('confirmed', 'cancelled', 'completed')",
            name="ck_appointments_status",
        ),
    )

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_name = Column(String, nullable=False)
    requester_email = Column(String, nullable=False)
    purpose = Column(Text, nullable=False)
    booked_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    slot_id = Column(Integer, ForeignKey("faculty_slots.id", ondelete="SET NULL"), nullable=True)
    status = Column(String, nullable=False, default=APPOINTMENT_CONFIRMED)
