"""Collaborators the scheduling core depends on."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Protocol
from zoneinfo import ZoneInfo

from medbook.models.appointment import Appointment
from medbook.models.doctor import Doctor


class ActorRole(str, Enum):
    DOCTOR = 'doctor'
    PATIENT = 'patient'


@dataclass(frozen=True)
class Actor:
    """The authenticated party issuing a request."""

    role: ActorRole
    id: int

    @classmethod
    def doctor(cls, doctor_id: int) -> 'Actor':
        return cls(ActorRole.DOCTOR, doctor_id)

    @classmethod
    def patient(cls, patient_id: int) -> 'Actor':
        return cls(ActorRole.PATIENT, patient_id)

    @property
    def is_doctor(self) -> bool:
        return self.role is ActorRole.DOCTOR

    def owns(self, appointment: Appointment) -> bool:
        if self.is_doctor:
            return appointment.doctor_id == self.id
        return appointment.patient_id == self.id


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Wall clock in the clinic timezone, returned as naive local datetimes."""

    def __init__(self, timezone: str):
        self._zone = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._zone).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()


class DoctorDirectory(Protocol):
    def find_doctor_by_id(self, doctor_id: int) -> Doctor | None:
        ...

    def patient_exists(self, patient_id: int) -> bool:
        ...

    def replace_availability(self, doctor_id: int, windows: list) -> Doctor:
        ...


class AppointmentStore(Protocol):
    def find_by_id(self, appointment_id: int) -> Appointment | None:
        ...

    def find_by_doctor_and_date(
        self,
        doctor_id: int,
        on_date: date,
        time: str | None = None,
        exclude_statuses: tuple[str, ...] = ('cancelled',),
        exclude_id: int | None = None,
    ) -> list[Appointment]:
        ...

    def find_nearest_before(
        self, doctor_id: int, on_date: date, time: str, exclude_id: int | None = None
    ) -> Appointment | None:
        ...

    def find_nearest_after(
        self, doctor_id: int, on_date: date, time: str, exclude_id: int | None = None
    ) -> Appointment | None:
        ...

    def insert(self, appointment: Appointment) -> Appointment:
        ...

    def update(self, appointment: Appointment) -> Appointment:
        ...

    def find_confirmed_past(self, cutoff: date) -> list[Appointment]:
        ...

    def list_active(
        self,
        actor: Actor,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Appointment]:
        ...

    def list_archived(self, actor: Actor, patient_id: int | None = None) -> list[Appointment]:
        ...
