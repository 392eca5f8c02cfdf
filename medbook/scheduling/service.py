"""Appointment use cases exposed to the API layer."""

import logging
from datetime import date

from medbook.models.appointment import Appointment, AppointmentStatus
from medbook.scheduling import lifecycle
from medbook.scheduling.availability import WindowSpec, validate_windows
from medbook.scheduling.conflicts import check_slot_available
from medbook.scheduling.errors import (
    AppointmentNotFound,
    DoctorNotFound,
    InvalidAppointmentData,
    PatientNotFound,
    SchedulingError,
    Unauthorized,
)
from medbook.scheduling.ports import Actor, AppointmentStore, Clock, DoctorDirectory
from medbook.scheduling.slot_grid import iterate_day_slots, normalize_time

MIN_REASON_LENGTH = 10
MAX_REASON_LENGTH = 500
MAX_NOTES_LENGTH = 1000

logger = logging.getLogger(__name__)


def normalize_reason(reason: str | None) -> str:
    normalized = (reason or '').strip()
    if len(normalized) < MIN_REASON_LENGTH:
        raise InvalidAppointmentData(f'Reason must be at least {MIN_REASON_LENGTH} characters.')
    if len(normalized) > MAX_REASON_LENGTH:
        raise InvalidAppointmentData(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')
    return normalized


def normalize_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    normalized = notes.strip()
    if len(normalized) > MAX_NOTES_LENGTH:
        raise InvalidAppointmentData(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')
    return normalized or None


class AppointmentService:
    def __init__(self, clock: Clock, directory: DoctorDirectory, store: AppointmentStore):
        self.clock = clock
        self.directory = directory
        self.store = store

    def validate_and_check_availability(
        self,
        doctor_id: int,
        requested_date: date,
        requested_time: str,
        exclude_appointment_id: int | None = None,
    ) -> str:
        return check_slot_available(
            self.clock,
            self.directory,
            self.store,
            doctor_id,
            requested_date,
            requested_time,
            exclude_appointment_id=exclude_appointment_id,
        )

    def list_open_slots(self, doctor_id: int, requested_date: date) -> list[str]:
        """Grid times on ``requested_date`` that would currently pass the conflict check."""
        if self.directory.find_doctor_by_id(doctor_id) is None:
            raise DoctorNotFound(doctor_id)

        open_slots = []
        for slot in iterate_day_slots():
            try:
                open_slots.append(self.validate_and_check_availability(doctor_id, requested_date, slot))
            except DoctorNotFound:
                raise
            except SchedulingError:
                continue
        return open_slots

    def create_appointment(
        self,
        patient_id: int,
        doctor_id: int,
        requested_date: date,
        requested_time: str,
        reason: str,
    ) -> Appointment:
        normalized_reason = normalize_reason(reason)
        logger.info(
            'Booking attempt: patient %s with doctor %s on %s at %s',
            patient_id, doctor_id, requested_date, requested_time,
        )

        try:
            slot_time = self.validate_and_check_availability(doctor_id, requested_date, requested_time)
            if not self.directory.patient_exists(patient_id):
                raise PatientNotFound(patient_id)
        except SchedulingError as exc:
            logger.warning('Booking rejected for doctor %s on %s at %s: %s', doctor_id, requested_date, requested_time, exc)
            raise

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            date=requested_date,
            time=slot_time,
            reason=normalized_reason,
            status=AppointmentStatus.PENDING.value,
            is_archived=False,
        )
        appointment = self.store.insert(appointment)
        logger.info('Appointment %s booked for doctor %s on %s at %s', appointment.id, doctor_id, requested_date, slot_time)
        return appointment

    def book_appointment(
        self,
        actor: Actor,
        doctor_id: int,
        requested_date: date,
        requested_time: str,
        reason: str,
        patient_id: int | None = None,
    ) -> Appointment:
        """Create an appointment on behalf of ``actor``.

        Patients always book for themselves. Doctors may only book on their own calendar
        and must name the patient.
        """
        if actor.is_doctor:
            if actor.id != doctor_id:
                logger.warning('Doctor %s tried to book on the calendar of doctor %s', actor.id, doctor_id)
                raise Unauthorized('Doctors can only book appointments on their own calendar.')
            if patient_id is None:
                raise InvalidAppointmentData('A patient must be selected for the appointment.')
        else:
            patient_id = actor.id

        return self.create_appointment(patient_id, doctor_id, requested_date, requested_time, reason)

    def get_appointment(self, appointment_id: int, actor: Actor) -> Appointment:
        appointment = self._load(appointment_id)
        if not actor.owns(appointment):
            raise Unauthorized('Not authorized to view this appointment.')
        return appointment

    def _load(self, appointment_id: int) -> Appointment:
        appointment = self.store.find_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFound(appointment_id)
        return appointment

    def update_appointment(
        self,
        appointment_id: int,
        actor: Actor,
        requested_date: date | None = None,
        requested_time: str | None = None,
        reason: str | None = None,
        notes: str | None = None,
    ) -> Appointment:
        """Apply a partial edit. Omitted fields stay as they are; an empty ``notes`` clears them."""
        appointment = self._load(appointment_id)
        lifecycle.require_owner(appointment, actor, 'modify')

        new_time = normalize_time(requested_time) if requested_time else None
        moves = not lifecycle.is_same_slot(appointment, requested_date, new_time)
        lifecycle.ensure_editable(appointment, actor, touches_schedule=moves or bool(reason))

        new_reason = normalize_reason(reason) if reason else None
        new_notes = normalize_notes(notes)

        if moves:
            new_time = self.validate_and_check_availability(
                appointment.doctor_id,
                requested_date or appointment.date,
                new_time or appointment.time,
                exclude_appointment_id=appointment.id,
            )
            appointment.date = requested_date or appointment.date
            appointment.time = new_time
            logger.info('Appointment %s rescheduled to %s %s', appointment.id, appointment.date, appointment.time)

        if new_reason:
            appointment.reason = new_reason
        if notes is not None:
            appointment.notes = new_notes

        return self.store.update(appointment)

    def apply_status_transition(self, appointment: Appointment, requested_status, actor: Actor) -> Appointment:
        return lifecycle.apply_status_transition(appointment, requested_status, actor, self.clock.now())

    def change_status(self, appointment_id: int, requested_status, actor: Actor) -> Appointment:
        appointment = self._load(appointment_id)
        self.apply_status_transition(appointment, requested_status, actor)
        return self.store.update(appointment)

    def cancel_appointment(self, appointment_id: int, actor: Actor) -> Appointment:
        appointment = self._load(appointment_id)
        lifecycle.cancel(appointment, actor, self.clock.now())
        return self.store.update(appointment)

    def archive_appointment(self, appointment_id: int, actor: Actor) -> Appointment:
        appointment = self._load(appointment_id)
        lifecycle.archive(appointment, actor)
        return self.store.update(appointment)

    def list_appointments(
        self,
        actor: Actor,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Appointment]:
        return self.store.list_active(actor, status=status, start_date=start_date, end_date=end_date)

    def list_archived_appointments(self, actor: Actor, patient_id: int | None = None) -> list[Appointment]:
        return self.store.list_archived(actor, patient_id=patient_id)

    def update_availability(self, doctor_id: int, actor: Actor, windows: list[WindowSpec]):
        if not actor.is_doctor or actor.id != doctor_id:
            logger.warning('%s %s tried to change availability of doctor %s', actor.role.value, actor.id, doctor_id)
            raise Unauthorized("Cannot update another doctor's availability.")

        validated = validate_windows(windows)
        doctor = self.directory.replace_availability(doctor_id, validated)
        logger.info('Availability for doctor %s now has %d windows', doctor_id, len(validated))
        return doctor
