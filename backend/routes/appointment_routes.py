from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user, require_roles
from backend.core import config
from backend.database import get_db
from backend.models.appointment import Appointment
from backend.models.user import ROLE_ADMIN, User
from backend.notifications.reminders import ReminderMessage, dispatch_reminder
from backend.routes.availability_routes import DATABASE_UNAVAILABLE_DETAIL, ensure_database_ready
from backend.scheduling import booking
from backend.scheduling.errors import BookingValidationError, SlotNotFoundError, SlotUnavailableError

router = APIRouter(tags=['appointments'])

MAX_INTAKE_FIELD_LENGTH = 200
LIST_AS_REQUESTER = 'requester'
LIST_AS_OWNER = 'owner'


def _normalize_required(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    if len(normalized) > MAX_INTAKE_FIELD_LENGTH:
        raise ValueError(f'{label} must be {MAX_INTAKE_FIELD_LENGTH} characters or fewer.')
    return normalized


class SlotRequestDetails(BaseModel):
    scholar_name: str
    emp_id: str
    registration: str
    meeting_type: str = 'dc1'
    notes: str | None = None

    @field_validator('scholar_name')
    @classmethod
    def validate_scholar_name(cls, value: str) -> str:
        return _normalize_required(value, 'Scholar name')

    @field_validator('emp_id')
    @classmethod
    def validate_emp_id(cls, value: str) -> str:
        return _normalize_required(value, 'Employee ID')

    @field_validator('registration')
    @classmethod
    def validate_registration(cls, value: str) -> str:
        return _normalize_required(value, 'Registration number')

    @field_validator('meeting_type')
    @classmethod
    def validate_meeting_type(cls, value: str) -> str:
        return _normalize_required(value, 'Meeting type').lower()

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class BookSlotRequest(BaseModel):
    slot_id: int
    purpose: str
    requester_name: str | None = None
    requester_email: str | None = None
    slot_request: SlotRequestDetails | None = None

    @field_validator('purpose')
    @classmethod
    def validate_purpose(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Please provide a reason for booking.')
        if len(normalized) > booking.MAX_PURPOSE_LENGTH:
            raise ValueError(f'Purpose must be {booking.MAX_PURPOSE_LENGTH} characters or fewer.')
        return normalized

    @field_validator('requester_email')
    @classmethod
    def validate_requester_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if not normalized:
            return None
        if '@' not in normalized:
            raise ValueError('Enter a valid email address.')
        return normalized

    @field_validator('requester_name')
    @classmethod
    def validate_requester_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class AppointmentResponse(BaseModel):
    id: int
    owner_id: int
    requester_id: int
    requester_name: str
    requester_email: str
    purpose: str
    booked_at: datetime
    start_time: datetime
    end_time: datetime
    slot_id: int | None = None
    status: str

    class Config:
        from_attributes = True


def build_booking_details(data: BookSlotRequest) -> booking.BookingDetails:
    intake = None
    if data.slot_request is not None:
        intake = booking.IntakeDetails(
            scholar_name=data.slot_request.scholar_name,
            emp_id=data.slot_request.emp_id,
            registration=data.slot_request.registration,
            meeting_type=data.slot_request.meeting_type,
            notes=data.slot_request.notes,
        )

    return booking.BookingDetails(
        purpose=data.purpose,
        requester_name=data.requester_name,
        requester_email=data.requester_email,
        intake=intake,
    )


def schedule_reminder(background_tasks: BackgroundTasks):
    if not config.REMINDERS_ENABLED:
        return None

    def notify(appointment: Appointment) -> None:
        background_tasks.add_task(dispatch_reminder, ReminderMessage.from_appointment(appointment))

    return notify


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: BookSlotRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking.book_slot(
            db,
            slot_id=data.slot_id,
            requester=current_user,
            details=build_booking_details(data),
            notify=schedule_reminder(background_tasks),
        )
    except SlotNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.message,
        ) from exc
    except SlotUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.message,
        ) from exc
    except BookingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('', response_model=list[AppointmentResponse])
def list_my_appointments(
    list_as: str = Query(default=LIST_AS_REQUESTER, alias='as'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    normalized = list_as.strip().lower()
    if normalized not in (LIST_AS_REQUESTER, LIST_AS_OWNER):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='List appointments as "requester" or "owner".',
        )

    ensure_database_ready()

    try:
        if normalized == LIST_AS_OWNER:
            return booking.list_appointments(db, owner_id=current_user.id)
        return booking.list_appointments(db, requester_id=current_user.id)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/all', response_model=list[AppointmentResponse])
def list_all_appointments(
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        return booking.list_all_appointments(db)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
