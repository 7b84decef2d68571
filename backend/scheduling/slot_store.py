"""Persistence of generated slots and the read side the booking flow depends on."""

import logging
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import exists, insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.models.appointment import Appointment
from backend.models.availability import Availability
from backend.models.slot import SLOT_AVAILABLE, SLOT_STATUSES, Slot
from backend.scheduling.errors import AvailabilityValidationError
from backend.scheduling.slot_generator import CandidateSlot, generate_slots, normalize_slot_duration

logger = logging.getLogger(__name__)

SLOT_KEY_COLUMNS = ['owner_id', 'date', 'start_time', 'end_time']


def scheduling_zone() -> ZoneInfo:
    return ZoneInfo(config.SCHEDULING_TIMEZONE)


def local_today() -> date:
    return datetime.now(scheduling_zone()).date()


def validate_availability_window(
    slot_date: date | None,
    start_time: time | None,
    end_time: time | None,
) -> None:
    if slot_date is None or start_time is None or end_time is None:
        raise AvailabilityValidationError('Date, start time and end time are required.')

    if start_time >= end_time:
        raise AvailabilityValidationError('Start time must be before end time.')


def _slot_rows(candidates: list[CandidateSlot], availability_id: int | None) -> list[dict]:
    created_at = datetime.now(timezone.utc)
    return [
        {
            'owner_id': candidate.owner_id,
            'date': candidate.date,
            'start_time': candidate.start_time,
            'end_time': candidate.end_time,
            'status': SLOT_AVAILABLE,
            'availability_id': availability_id,
            'created_at': created_at,
        }
        for candidate in candidates
    ]


def _insert_rows_with_savepoints(db: Session, rows: list[dict]) -> int:
    created = 0
    for row in rows:
        try:
            with db.begin_nested():
                db.execute(insert(Slot.__table__).values(**row))
        except IntegrityError:
            logger.debug(
                'Slot %s %s-%s for owner %s already exists; skipping.',
                row['date'], row['start_time'], row['end_time'], row['owner_id'],
            )
            continue
        created += 1

    return created


def insert_slots(db: Session, candidates: list[CandidateSlot], availability_id: int | None = None) -> int:
    """Insert candidate slots, leaving any slot with the same owner and interval untouched.

    Runs inside the caller's transaction and returns the number of new rows.
    """
    if not candidates:
        return 0

    rows = _slot_rows(candidates, availability_id)
    dialect_name = db.get_bind().dialect.name

    if dialect_name == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect_name == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        return _insert_rows_with_savepoints(db, rows)

    statement = dialect_insert(Slot.__table__).values(rows).on_conflict_do_nothing(
        index_elements=SLOT_KEY_COLUMNS,
    )
    result = db.execute(statement)
    created = max(result.rowcount or 0, 0)

    if created < len(rows):
        logger.debug('Skipped %s existing slots for owner %s.', len(rows) - created, candidates[0].owner_id)

    return created


def create_availability(
    db: Session,
    owner_id: int,
    slot_date: date,
    start_time: time,
    end_time: time,
    slot_duration: int | None = None,
) -> tuple[Availability, int]:
    """Record an availability window and expand it into slots in the same transaction.

    Returns the stored window and how many slots were newly created. Re-submitting a
    window that overlaps existing slots only adds the missing ones.
    """
    validate_availability_window(slot_date, start_time, end_time)
    duration = normalize_slot_duration(slot_duration, default=config.DEFAULT_SLOT_DURATION_MINUTES)

    availability = Availability(
        owner_id=owner_id,
        date=slot_date,
        start_time=start_time,
        end_time=end_time,
        slot_duration=duration,
    )

    try:
        db.add(availability)
        db.flush()

        candidates = generate_slots(owner_id, slot_date, start_time, end_time, duration)
        created = insert_slots(db, candidates, availability_id=availability.id)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(availability)
    logger.info(
        'Availability %s for owner %s on %s: %s candidate slots, %s created.',
        availability.id, owner_id, slot_date, len(candidates), created,
    )
    return availability, created


def list_availability(db: Session, owner_id: int | None = None, from_date: date | None = None) -> list[Availability]:
    query = db.query(Availability).filter(Availability.date >= (from_date or local_today()))
    if owner_id is not None:
        query = query.filter(Availability.owner_id == owner_id)

    return query.order_by(Availability.date.asc(), Availability.start_time.asc()).all()


def list_slots(
    db: Session,
    owner_id: int | None = None,
    status: str = SLOT_AVAILABLE,
    from_date: date | None = None,
) -> list[Slot]:
    if status not in SLOT_STATUSES:
        raise ValueError(f'Unknown slot status: {status}')

    query = db.query(Slot).filter(
        Slot.status == status,
        Slot.date >= (from_date or local_today()),
    )
    if owner_id is not None:
        query = query.filter(Slot.owner_id == owner_id)

    return query.order_by(Slot.date.asc(), Slot.start_time.asc()).all()


def list_available_slots(db: Session, owner_id: int | None = None, from_date: date | None = None) -> list[Slot]:
    """Bookable slots, earliest first.

    A slot qualifies only while its status is available and no appointment points at it.
    """
    query = db.query(Slot).filter(
        Slot.status == SLOT_AVAILABLE,
        Slot.date >= (from_date or local_today()),
        ~exists().where(Appointment.slot_id == Slot.id),
    )
    if owner_id is not None:
        query = query.filter(Slot.owner_id == owner_id)

    return query.order_by(Slot.date.asc(), Slot.start_time.asc()).all()
