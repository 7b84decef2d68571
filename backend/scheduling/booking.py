"""Atomic booking of a slot.

A booking inserts the appointment and flips the slot from available to booked in one
transaction. The unique index on ``appointments.slot_id`` is what finally decides a
race: whichever insert commits first wins and every other attempt rolls back with
:class:`SlotUnavailableError`, leaving no appointment and the slot untouched.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.appointment import APPOINTMENT_CONFIRMED, Appointment
from backend.models.slot import SLOT_AVAILABLE, SLOT_BOOKED, Slot
from backend.models.slot_request import SlotRequest
from backend.models.user import User
from backend.scheduling.errors import (
    BookingValidationError,
    SlotNotFoundError,
    SlotUnavailableError,
)
from backend.scheduling.slot_generator import slot_bounds
from backend.scheduling.slot_store import local_today, scheduling_zone

logger = logging.getLogger(__name__)

MAX_PURPOSE_LENGTH = 1000
SLOT_REFERENCE_INDEX = 'appointments_slot_id_unique_not_null'


@dataclass
class IntakeDetails:
    scholar_name: str
    emp_id: str
    registration: str
    meeting_type: str
    notes: str | None = None


@dataclass
class BookingDetails:
    purpose: str
    requester_name: str | None = None
    requester_email: str | None = None
    intake: IntakeDetails | None = None


def meeting_bounds(slot: Slot) -> tuple[datetime, datetime]:
    return slot_bounds(slot.date, slot.start_time, slot.end_time, scheduling_zone())


def _is_slot_reference_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    # postgres reports the index name, sqlite the column
    return SLOT_REFERENCE_INDEX in message or 'appointments.slot_id' in message


def _validated_purpose(details: BookingDetails) -> str:
    purpose = (details.purpose or '').strip()
    if not purpose:
        raise BookingValidationError('Please provide a reason for booking.')
    if len(purpose) > MAX_PURPOSE_LENGTH:
        raise BookingValidationError(f'Purpose must be {MAX_PURPOSE_LENGTH} characters or fewer.')
    return purpose


def _load_slot_for_update(db: Session, slot_id: int) -> Slot | None:
    return db.query(Slot).filter(Slot.id == slot_id).with_for_update().first()


def book_slot(
    db: Session,
    slot_id: int,
    requester: User,
    details: BookingDetails,
    notify: Callable[[Appointment], None] | None = None,
) -> Appointment:
    """Claim ``slot_id`` for ``requester`` and return the committed appointment.

    ``notify`` runs only after the commit. Its failures are logged and never undo
    or fail the booking.
    """
    purpose = _validated_purpose(details)
    requester_id = requester.id

    slot = _load_slot_for_update(db, slot_id)
    if slot is None:
        db.rollback()
        raise SlotNotFoundError(slot_id)

    if slot.owner_id == requester_id:
        db.rollback()
        raise BookingValidationError('You cannot book one of your own slots.')

    if slot.status != SLOT_AVAILABLE:
        db.rollback()
        logger.warning('Booking of slot %s by user %s rejected: slot is %s.', slot_id, requester_id, slot.status)
        raise SlotUnavailableError(slot_id)

    if slot.date < local_today():
        db.rollback()
        logger.warning('Booking of slot %s by user %s rejected: slot date %s has passed.', slot_id, requester_id, slot.date)
        raise SlotUnavailableError(slot_id)

    start_time, end_time = meeting_bounds(slot)
    appointment = Appointment(
        owner_id=slot.owner_id,
        requester_id=requester_id,
        requester_name=(details.requester_name or requester.name or requester.email).strip(),
        requester_email=(details.requester_email or requester.email).strip().lower(),
        purpose=purpose,
        start_time=start_time,
        end_time=end_time,
        slot_id=slot.id,
        status=APPOINTMENT_CONFIRMED,
    )

    try:
        db.add(appointment)
        db.flush()

        claimed = db.query(Slot).filter(
            Slot.id == slot_id,
            Slot.status == SLOT_AVAILABLE,
        ).update({Slot.status: SLOT_BOOKED}, synchronize_session=False)
        if claimed != 1:
            raise SlotUnavailableError(slot_id)

        if details.intake is not None:
            db.add(
                SlotRequest(
                    appointment_id=appointment.id,
                    scholar_name=details.intake.scholar_name,
                    emp_id=details.intake.emp_id,
                    registration=details.intake.registration,
                    meeting_type=details.intake.meeting_type,
                    notes=details.intake.notes,
                )
            )

        db.commit()
    except SlotUnavailableError:
        db.rollback()
        logger.warning('Booking of slot %s by user %s lost the race.', slot_id, requester_id)
        raise
    except IntegrityError as exc:
        db.rollback()
        if not _is_slot_reference_violation(exc):
            raise
        logger.warning('Booking of slot %s by user %s lost the race.', slot_id, requester_id)
        raise SlotUnavailableError(slot_id) from exc
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(appointment)
    logger.info('Slot %s booked by user %s as appointment %s.', slot_id, requester_id, appointment.id)

    if notify is not None:
        try:
            notify(appointment)
        except Exception:
            logger.exception('Reminder dispatch failed for appointment %s.', appointment.id)

    return appointment


def list_appointments(
    db: Session,
    requester_id: int | None = None,
    owner_id: int | None = None,
) -> list[Appointment]:
    if requester_id is None and owner_id is None:
        raise ValueError('Filter by requester or owner.')

    query = db.query(Appointment)
    if requester_id is not None:
        query = query.filter(Appointment.requester_id == requester_id)
    if owner_id is not None:
        query = query.filter(Appointment.owner_id == owner_id)

    return query.order_by(Appointment.start_time.asc(), Appointment.id.asc()).all()


def list_all_appointments(db: Session) -> list[Appointment]:
    return db.query(Appointment).order_by(Appointment.booked_at.desc(), Appointment.id.desc()).all()
