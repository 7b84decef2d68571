from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import ensure_scheduling_schema, get_db
from backend.models.slot import SLOT_AVAILABLE, SLOT_STATUSES
from backend.models.user import ROLE_ADMIN, ROLE_FACULTY, User
from backend.scheduling import slot_store
from backend.scheduling.errors import AvailabilityValidationError

router = APIRouter(tags=['availability'])

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and Postgres credentials.'
MAX_SLOT_DURATION_MINUTES = 480
SLOT_OWNER_ROLES = (ROLE_FACULTY, ROLE_ADMIN)


class CreateAvailabilityRequest(BaseModel):
    owner_id: int | None = None
    date: date
    start_time: time
    end_time: time
    slot_duration: int | None = None

    @field_validator('slot_duration')
    @classmethod
    def validate_slot_duration(cls, value: int | None) -> int | None:
        if value is not None and value > MAX_SLOT_DURATION_MINUTES:
            raise ValueError(f'Slot duration must be {MAX_SLOT_DURATION_MINUTES} minutes or fewer.')
        return value

    @model_validator(mode='after')
    def validate_window(self) -> 'CreateAvailabilityRequest':
        if self.start_time >= self.end_time:
            raise ValueError('Start time must be before end time.')
        return self


class AvailabilityResponse(BaseModel):
    id: int
    owner_id: int
    date: date
    start_time: time
    end_time: time
    slot_duration: int
    created_at: datetime

    class Config:
        from_attributes = True


class CreateAvailabilityResponse(BaseModel):
    availability: AvailabilityResponse
    slots_created: int


class SlotResponse(BaseModel):
    id: int
    owner_id: int
    date: date
    start_time: time
    end_time: time
    status: str
    availability_id: int | None = None

    class Config:
        from_attributes = True


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def resolve_slot_owner(data: CreateAvailabilityRequest, current_user: User, db: Session) -> int:
    if current_user.role not in SLOT_OWNER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only faculty and admins can publish availability.',
        )

    owner_id = data.owner_id if data.owner_id is not None else current_user.id
    if owner_id == current_user.id:
        return owner_id

    if current_user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Faculty can only publish their own availability.',
        )

    owner = db.query(User).filter(User.id == owner_id).first()
    if owner is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Faculty member not found.',
        )
    if owner.role not in SLOT_OWNER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Availability can only be published for faculty or admin accounts.',
        )

    return owner_id


@router.post('', response_model=CreateAvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    data: CreateAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        owner_id = resolve_slot_owner(data, current_user, db)
        availability, slots_created = slot_store.create_availability(
            db,
            owner_id=owner_id,
            slot_date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            slot_duration=data.slot_duration,
        )
    except AvailabilityValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    return CreateAvailabilityResponse(
        availability=AvailabilityResponse.model_validate(availability),
        slots_created=slots_created,
    )


@router.get('', response_model=list[AvailabilityResponse])
def list_availability(
    owner_id: int | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        return slot_store.list_availability(db, owner_id=owner_id)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/slots', response_model=list[SlotResponse])
def list_open_slots(
    owner_id: int | None = Query(default=None),
    from_date: date | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    if from_date is not None and from_date < slot_store.local_today():
        from_date = None

    try:
        return slot_store.list_available_slots(db, owner_id=owner_id, from_date=from_date)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/slots/all', response_model=list[SlotResponse])
def list_owner_slots(
    slot_status: str = Query(default=SLOT_AVAILABLE, alias='status'),
    owner_id: int | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    normalized_status = slot_status.strip().lower()
    if normalized_status not in SLOT_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid slot status.',
        )

    target_owner = owner_id if owner_id is not None else current_user.id
    if target_owner != current_user.id and current_user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only admins can view another owner\'s slots.',
        )

    ensure_database_ready()

    try:
        return slot_store.list_slots(db, owner_id=target_owner, status=normalized_status)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
