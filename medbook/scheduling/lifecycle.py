"""Appointment status state machine.

    pending   -> confirmed | cancelled
    confirmed -> cancelled                (doctor: any time; archived once the slot has passed)
    confirmed -> completed | no-show      (only once the slot has passed; always archived)

cancelled, completed and no-show are terminal: only notes may change afterwards.
"""

import logging
from datetime import date, datetime, time

from medbook.models.appointment import Appointment, AppointmentStatus
from medbook.scheduling.errors import InvalidTransition, NotEditable, Unauthorized
from medbook.scheduling.ports import Actor
from medbook.scheduling.slot_grid import parse_time

logger = logging.getLogger(__name__)

PENDING = AppointmentStatus.PENDING.value
CONFIRMED = AppointmentStatus.CONFIRMED.value
CANCELLED = AppointmentStatus.CANCELLED.value
COMPLETED = AppointmentStatus.COMPLETED.value
NO_SHOW = AppointmentStatus.NO_SHOW.value

ALLOWED_TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({CANCELLED, COMPLETED, NO_SHOW}),
}


def starts_at(appointment: Appointment) -> datetime:
    hour, minute = parse_time(appointment.time)
    return datetime.combine(appointment.date, time(hour, minute))


def has_passed(appointment: Appointment, now: datetime) -> bool:
    return now > starts_at(appointment)


def _status_value(requested_status) -> str:
    if isinstance(requested_status, AppointmentStatus):
        return requested_status.value
    return str(requested_status).strip().lower()


def require_owner(appointment: Appointment, actor: Actor, action: str) -> None:
    if not actor.owns(appointment):
        raise Unauthorized(f'Not authorized to {action} this appointment.')


def apply_status_transition(appointment: Appointment, requested_status, actor: Actor, now: datetime) -> Appointment:
    """Move ``appointment`` to ``requested_status`` in place and return it.

    Only the doctor who owns the appointment may change its status. Transitions out of
    ``confirmed`` into a terminal state after the slot has passed also archive the record.
    """
    requested = _status_value(requested_status)
    current = appointment.status

    if not actor.is_doctor:
        raise Unauthorized('Only the doctor can change the appointment status.')
    require_owner(appointment, actor, 'change the status of')

    if requested not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        logger.warning('Rejected transition %s -> %s for appointment %s', current, requested, appointment.id)
        raise InvalidTransition(current, requested)

    passed = has_passed(appointment, now)

    if current == CONFIRMED and requested in (COMPLETED, NO_SHOW) and not passed:
        raise InvalidTransition(current, requested, 'The appointment has not taken place yet.')

    appointment.status = requested
    if current == CONFIRMED and passed:
        appointment.is_archived = True

    logger.info('Appointment %s moved from %s to %s', appointment.id, current, requested)
    return appointment


def cancel(appointment: Appointment, actor: Actor, now: datetime) -> Appointment:
    """Cancel on behalf of either party.

    Patients cannot cancel same-day or past appointments; doctors can.
    """
    require_owner(appointment, actor, 'cancel')

    current = appointment.status
    if current not in ALLOWED_TRANSITIONS or CANCELLED not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current, CANCELLED)

    if not actor.is_doctor and appointment.date <= now.date():
        raise Unauthorized('Same-day or past appointments can only be cancelled by the doctor.')

    appointment.status = CANCELLED
    if current == CONFIRMED and has_passed(appointment, now):
        appointment.is_archived = True

    logger.info('Appointment %s cancelled by %s %s', appointment.id, actor.role.value, actor.id)
    return appointment


def archive(appointment: Appointment, actor: Actor) -> Appointment:
    if not actor.is_doctor:
        raise Unauthorized('Only the doctor can archive appointments.')
    require_owner(appointment, actor, 'archive')

    if not appointment.is_terminal:
        raise InvalidTransition(
            appointment.status,
            'archived',
            'Only completed, cancelled or no-show appointments can be archived.',
        )

    appointment.is_archived = True
    return appointment


def ensure_editable(appointment: Appointment, actor: Actor, touches_schedule: bool) -> None:
    require_owner(appointment, actor, 'modify')
    if touches_schedule and appointment.is_terminal:
        raise NotEditable(appointment.id, appointment.status)


def is_same_slot(appointment: Appointment, new_date: date | None, new_time: str | None) -> bool:
    return (new_date is None or new_date == appointment.date) and (new_time is None or new_time == appointment.time)
