from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from medbook.auth.dependencies import get_current_actor
from medbook.core import config
from medbook.database import SessionLocal
from medbook.models.appointment import AppointmentStatus
from medbook.repositories.appointment_repository import SqlAlchemyAppointmentStore
from medbook.repositories.doctor_repository import SqlAlchemyDoctorDirectory
from medbook.scheduling.errors import (
    AppointmentNotFound,
    DoctorNotFound,
    InsufficientBuffer,
    PatientNotFound,
    SchedulingError,
    SlotTaken,
    StorageFailure,
    Unauthorized,
)
from medbook.scheduling.ports import Actor, SystemClock
from medbook.scheduling.service import MAX_NOTES_LENGTH, MAX_REASON_LENGTH, MIN_REASON_LENGTH, AppointmentService

router = APIRouter(tags=['appointments'])

ERROR_STATUS_CODES = {
    DoctorNotFound: status.HTTP_404_NOT_FOUND,
    AppointmentNotFound: status.HTTP_404_NOT_FOUND,
    PatientNotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    SlotTaken: status.HTTP_409_CONFLICT,
    InsufficientBuffer: status.HTTP_409_CONFLICT,
}


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    date: date
    time: str
    reason: str
    patient_id: int | None = None

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return value.strip()

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if not MIN_REASON_LENGTH <= len(normalized) <= MAX_REASON_LENGTH:
            raise ValueError(f'Reason must be between {MIN_REASON_LENGTH} and {MAX_REASON_LENGTH} characters.')
        return normalized


class UpdateAppointmentRequest(BaseModel):
    reschedule_date: date | None = None
    reschedule_time: str | None = None
    reason: str | None = None
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if len(normalized) > MAX_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')

        # empty string clears stored notes
        return normalized


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    date: date
    time: str
    status: str
    is_archived: bool
    reason: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(
        SystemClock(config.CLINIC_TIMEZONE),
        SqlAlchemyDoctorDirectory(db),
        SqlAlchemyAppointmentStore(db),
    )


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, StorageFailure):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        )

    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=exc.message)


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.book_appointment(
            actor,
            doctor_id=data.doctor_id,
            requested_date=data.date,
            requested_time=data.time,
            reason=data.reason,
            patient_id=data.patient_id,
        )
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    status_filter: AppointmentStatus | None = Query(default=None, alias='status'),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.list_appointments(
            actor,
            status=status_filter.value if status_filter else None,
            start_date=start_date,
            end_date=end_date,
        )
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.get('/archived', response_model=list[AppointmentResponse])
def list_archived_appointments(
    patient_id: int | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.list_archived_appointments(actor, patient_id=patient_id)
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.get_appointment(appointment_id, actor)
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.update_appointment(
            appointment_id,
            actor,
            requested_date=data.reschedule_date,
            requested_time=data.reschedule_time,
            reason=data.reason,
            notes=data.notes,
        )
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: int,
    data: StatusChangeRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.change_status(appointment_id, data.status, actor)
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.cancel_appointment(appointment_id, actor)
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/archive', response_model=AppointmentResponse)
def archive_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.archive_appointment(appointment_id, actor)
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc
