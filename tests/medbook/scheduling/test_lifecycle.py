from datetime import date, datetime

import pytest

from medbook.models.appointment import TERMINAL_STATUSES, Appointment, AppointmentStatus
from medbook.scheduling import lifecycle
from medbook.scheduling.errors import InvalidTransition, NotEditable, Unauthorized
from medbook.scheduling.ports import Actor

NOW = datetime(2026, 3, 2, 10, 0)
DOCTOR = Actor.doctor(1)
PATIENT = Actor.patient(2)


def build_appointment(status: str = 'pending', on_date: date = date(2026, 3, 9), at: str = '09:00') -> Appointment:
    return Appointment(
        id=7,
        doctor_id=1,
        patient_id=2,
        date=on_date,
        time=at,
        status=status,
        is_archived=False,
        reason='Persistent headache',
    )


@pytest.mark.parametrize(
    ('current', 'requested'),
    [
        ('pending', 'confirmed'),
        ('pending', 'cancelled'),
        ('confirmed', 'cancelled'),
    ],
)
def test_doctor_can_apply_allowed_future_transitions(current: str, requested: str) -> None:
    appointment = build_appointment(status=current)

    lifecycle.apply_status_transition(appointment, requested, DOCTOR, NOW)

    assert appointment.status == requested
    assert appointment.is_archived is False


def test_status_transition_accepts_enum_members() -> None:
    appointment = build_appointment()

    lifecycle.apply_status_transition(appointment, AppointmentStatus.CONFIRMED, DOCTOR, NOW)

    assert appointment.status == 'confirmed'


@pytest.mark.parametrize(
    ('current', 'requested'),
    [
        ('pending', 'completed'),
        ('pending', 'no-show'),
        ('confirmed', 'pending'),
        ('cancelled', 'confirmed'),
        ('completed', 'cancelled'),
        ('no-show', 'completed'),
    ],
)
def test_disallowed_transitions_are_rejected(current: str, requested: str) -> None:
    appointment = build_appointment(status=current, on_date=date(2026, 2, 20))

    with pytest.raises(InvalidTransition):
        lifecycle.apply_status_transition(appointment, requested, DOCTOR, NOW)

    assert appointment.status == current


@pytest.mark.parametrize('requested', ['completed', 'no-show'])
def test_confirmed_cannot_finish_before_slot_has_passed(requested: str) -> None:
    appointment = build_appointment(status='confirmed', on_date=date(2026, 3, 2), at='10:30')

    with pytest.raises(InvalidTransition):
        lifecycle.apply_status_transition(appointment, requested, DOCTOR, NOW)


@pytest.mark.parametrize('requested', ['completed', 'no-show', 'cancelled'])
def test_confirmed_past_slot_is_archived_on_transition(requested: str) -> None:
    appointment = build_appointment(status='confirmed', on_date=date(2026, 3, 2), at='09:00')

    lifecycle.apply_status_transition(appointment, requested, DOCTOR, NOW)

    assert appointment.status == requested
    assert appointment.is_archived is True


def test_patient_cannot_change_status() -> None:
    appointment = build_appointment()

    with pytest.raises(Unauthorized):
        lifecycle.apply_status_transition(appointment, 'confirmed', PATIENT, NOW)


def test_doctor_cannot_change_another_doctors_appointment() -> None:
    appointment = build_appointment()

    with pytest.raises(Unauthorized):
        lifecycle.apply_status_transition(appointment, 'confirmed', Actor.doctor(5), NOW)


def test_patient_can_cancel_future_appointment() -> None:
    appointment = build_appointment(status='confirmed')

    lifecycle.cancel(appointment, PATIENT, NOW)

    assert appointment.status == 'cancelled'
    assert appointment.is_archived is False


@pytest.mark.parametrize('on_date', [date(2026, 3, 2), date(2026, 2, 27)])
def test_patient_cannot_cancel_same_day_or_past_appointment(on_date: date) -> None:
    appointment = build_appointment(status='pending', on_date=on_date, at='16:00')

    with pytest.raises(Unauthorized):
        lifecycle.cancel(appointment, PATIENT, NOW)

    assert appointment.status == 'pending'


def test_doctor_can_cancel_same_day_appointment() -> None:
    appointment = build_appointment(status='pending', on_date=date(2026, 3, 2), at='16:00')

    lifecycle.cancel(appointment, DOCTOR, NOW)

    assert appointment.status == 'cancelled'


def test_doctor_cancelling_past_confirmed_appointment_archives_it() -> None:
    appointment = build_appointment(status='confirmed', on_date=date(2026, 2, 27))

    lifecycle.cancel(appointment, DOCTOR, NOW)

    assert appointment.status == 'cancelled'
    assert appointment.is_archived is True


@pytest.mark.parametrize('current', ['cancelled', 'completed', 'no-show'])
def test_terminal_appointments_cannot_be_cancelled(current: str) -> None:
    appointment = build_appointment(status=current)

    with pytest.raises(InvalidTransition):
        lifecycle.cancel(appointment, DOCTOR, NOW)


def test_stranger_cannot_cancel() -> None:
    with pytest.raises(Unauthorized):
        lifecycle.cancel(build_appointment(), Actor.patient(99), NOW)


@pytest.mark.parametrize('current', ['cancelled', 'completed', 'no-show'])
def test_doctor_can_archive_terminal_appointments(current: str) -> None:
    appointment = build_appointment(status=current)

    lifecycle.archive(appointment, DOCTOR)

    assert appointment.is_archived is True


@pytest.mark.parametrize('current', ['pending', 'confirmed'])
def test_active_appointments_cannot_be_archived(current: str) -> None:
    with pytest.raises(InvalidTransition):
        lifecycle.archive(build_appointment(status=current), DOCTOR)


def test_patient_cannot_archive() -> None:
    with pytest.raises(Unauthorized):
        lifecycle.archive(build_appointment(status='completed'), PATIENT)


def test_terminal_appointment_rejects_schedule_edits_but_allows_notes() -> None:
    appointment = build_appointment(status='completed')

    with pytest.raises(NotEditable):
        lifecycle.ensure_editable(appointment, DOCTOR, touches_schedule=True)

    lifecycle.ensure_editable(appointment, DOCTOR, touches_schedule=False)


def test_has_passed_compares_full_start_datetime() -> None:
    assert lifecycle.has_passed(build_appointment(on_date=date(2026, 3, 2), at='09:30'), NOW) is True
    assert lifecycle.has_passed(build_appointment(on_date=date(2026, 3, 2), at='10:00'), NOW) is False


def test_is_same_slot_treats_missing_fields_as_unchanged() -> None:
    appointment = build_appointment()

    assert lifecycle.is_same_slot(appointment, None, None) is True
    assert lifecycle.is_same_slot(appointment, date(2026, 3, 9), '09:00') is True
    assert lifecycle.is_same_slot(appointment, None, '09:30') is False


@pytest.mark.parametrize(
    ('current', 'terminal'),
    [
        ('pending', False),
        ('confirmed', False),
        ('cancelled', True),
        ('completed', True),
        ('no-show', True),
    ],
)
def test_is_terminal_matches_terminal_statuses(current: str, terminal: bool) -> None:
    assert build_appointment(status=current).is_terminal is terminal
    assert (current in TERMINAL_STATUSES) is terminal
