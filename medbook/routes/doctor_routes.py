from datetime import date

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from medbook.auth.dependencies import get_current_actor
from medbook.repositories.doctor_repository import SqlAlchemyDoctorDirectory
from medbook.routes.appointment_routes import get_appointment_service, get_db, to_http_exception
from medbook.scheduling.availability import WindowSpec
from medbook.scheduling.errors import DoctorNotFound, SchedulingError, StorageFailure
from medbook.scheduling.ports import Actor
from medbook.scheduling.service import AppointmentService

router = APIRouter(tags=['doctors'])


class AvailabilityWindowSchema(BaseModel):
    day_of_week: str
    start_time: str
    end_time: str

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: str) -> str:
        return value.strip().lower()

    class Config:
        from_attributes = True


class UpdateAvailabilityRequest(BaseModel):
    availability: list[AvailabilityWindowSchema]


class DoctorResponse(BaseModel):
    id: int
    name: str
    email: str
    speciality: str | None = None
    availability: list[AvailabilityWindowSchema] = []

    class Config:
        from_attributes = True


class OpenSlotsResponse(BaseModel):
    doctor_id: int
    date: date
    times: list[str]


@router.get('', response_model=list[DoctorResponse])
def list_doctors(db: Session = Depends(get_db)):
    try:
        return SqlAlchemyDoctorDirectory(db).list_doctors()
    except StorageFailure as exc:
        raise to_http_exception(exc) from exc


@router.get('/{doctor_id}', response_model=DoctorResponse)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    try:
        doctor = SqlAlchemyDoctorDirectory(db).find_doctor_by_id(doctor_id)
        if doctor is None:
            raise DoctorNotFound(doctor_id)
        return doctor
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc


@router.get('/{doctor_id}/slots', response_model=OpenSlotsResponse)
def list_open_slots(
    doctor_id: int,
    slot_date: date = Query(..., alias='date'),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        times = service.list_open_slots(doctor_id, slot_date)
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc

    return OpenSlotsResponse(doctor_id=doctor_id, date=slot_date, times=times)


@router.put('/{doctor_id}/availability', response_model=DoctorResponse, status_code=status.HTTP_200_OK)
def update_availability(
    doctor_id: int,
    data: UpdateAvailabilityRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    windows = [
        WindowSpec(window.day_of_week, window.start_time, window.end_time)
        for window in data.availability
    ]
    try:
        return service.update_availability(doctor_id, actor, windows)
    except (SchedulingError, StorageFailure) as exc:
        raise to_http_exception(exc) from exc
