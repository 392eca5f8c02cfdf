"""Typed outcomes of the scheduling core.

Every ``SchedulingError`` is an expected business-rule rejection that the API layer maps
to a client response. ``StorageFailure`` is kept outside that hierarchy: it wraps an
infrastructure error the core cannot resolve and is propagated to the caller.
"""

from datetime import date


class SchedulingError(Exception):
    """Base class for recoverable business-rule rejections."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DoctorNotFound(SchedulingError):
    def __init__(self, doctor_id: int):
        super().__init__(f'Doctor {doctor_id} was not found.')
        self.doctor_id = doctor_id


class PatientNotFound(SchedulingError):
    def __init__(self, patient_id: int):
        super().__init__(f'Patient {patient_id} was not found.')
        self.patient_id = patient_id


class AppointmentNotFound(SchedulingError):
    def __init__(self, appointment_id: int):
        super().__init__(f'Appointment {appointment_id} was not found.')
        self.appointment_id = appointment_id


class MalformedTime(SchedulingError):
    def __init__(self, value: str):
        super().__init__(f'Time {value!r} must use the HH:MM 24-hour format.')
        self.value = value


class OutsideClinicHours(SchedulingError):
    def __init__(self, value: str):
        super().__init__(f'Appointments can only start between 08:00 and 16:30 (requested {value}).')
        self.value = value


class InvalidGranularity(SchedulingError):
    def __init__(self, value: str):
        super().__init__(f'Appointments must start on 30-minute boundaries (requested {value}).')
        self.value = value


class PastDate(SchedulingError):
    def __init__(self, requested: date, today: date):
        super().__init__(f'Appointments cannot be booked on past dates ({requested} is before {today}).')
        self.requested = requested
        self.today = today


class NoAvailability(SchedulingError):
    def __init__(self, doctor_id: int, weekday: str, value: str):
        super().__init__(f'Doctor {doctor_id} is not available on {weekday} at {value}.')
        self.doctor_id = doctor_id
        self.weekday = weekday
        self.value = value


class SlotTaken(SchedulingError):
    def __init__(self, doctor_id: int, requested: date, value: str):
        super().__init__(f'Doctor {doctor_id} already has an appointment on {requested} at {value}.')
        self.doctor_id = doctor_id
        self.requested = requested
        self.value = value


class InsufficientBuffer(SchedulingError):
    def __init__(self, doctor_id: int, requested: date, value: str, neighbor_time: str, gap_minutes: int):
        super().__init__(
            f'Appointments must be at least 30 minutes apart; {value} is {gap_minutes} minutes '
            f'from the {neighbor_time} appointment on {requested}.'
        )
        self.doctor_id = doctor_id
        self.requested = requested
        self.value = value
        self.neighbor_time = neighbor_time
        self.gap_minutes = gap_minutes


class InvalidTransition(SchedulingError):
    def __init__(self, current_status: str, requested_status: str, detail: str | None = None):
        message = f'Cannot change appointment status from {current_status} to {requested_status}.'
        if detail:
            message = f'{message} {detail}'
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status


class NotEditable(SchedulingError):
    def __init__(self, appointment_id: int, current_status: str):
        super().__init__(f'Appointment {appointment_id} is {current_status} and can no longer be rescheduled.')
        self.appointment_id = appointment_id
        self.current_status = current_status


class Unauthorized(SchedulingError):
    pass


class InvalidAppointmentData(SchedulingError):
    pass


class StorageFailure(Exception):
    """Raised when the persistence layer fails for reasons outside the business rules."""
