"""Booking conflict detection.

Read-only gate evaluated before every create and every date/time edit. It narrows, but
does not close, the window between check and write; concurrent writers are stopped by
the partial unique index on ``appointments(doctor_id, date, time)``.
"""

import logging
from datetime import date

from medbook.models.appointment import AppointmentStatus
from medbook.scheduling.availability import check_doctor_availability
from medbook.scheduling.errors import InsufficientBuffer, SlotTaken
from medbook.scheduling.slot_grid import to_minutes, validate_slot

BUFFER_MINUTES = 30

logger = logging.getLogger(__name__)


def check_slot_available(
    clock,
    directory,
    store,
    doctor_id: int,
    requested_date: date,
    requested_time: str,
    exclude_appointment_id: int | None = None,
) -> str:
    """Raise a ``SchedulingError`` if the slot cannot be booked; return the normalised time.

    Checks, in order:
        1. Slot grid: format, clinic hours, 30-minute granularity, not in the past.
        2. Doctor exists and has a window covering the weekday/time.
        3. No non-cancelled appointment at exactly this time (``SlotTaken``).
        4. Nearest non-cancelled neighbours before and after are at least
           ``BUFFER_MINUTES`` away (``InsufficientBuffer``).

    Step 3 overlaps with step 4 whenever the buffer is at least the grid size; it is kept
    so an exact collision reports ``SlotTaken`` rather than ``InsufficientBuffer``.
    """
    normalized = validate_slot(requested_date, requested_time, clock.today())
    check_doctor_availability(directory, doctor_id, requested_date, normalized)

    cancelled = (AppointmentStatus.CANCELLED.value,)
    same_time = store.find_by_doctor_and_date(
        doctor_id,
        requested_date,
        time=normalized,
        exclude_statuses=cancelled,
        exclude_id=exclude_appointment_id,
    )
    if same_time:
        raise SlotTaken(doctor_id, requested_date, normalized)

    requested_minutes = to_minutes(normalized)

    previous = store.find_nearest_before(doctor_id, requested_date, normalized, exclude_id=exclude_appointment_id)
    if previous is not None:
        gap = requested_minutes - to_minutes(previous.time)
        if gap < BUFFER_MINUTES:
            raise InsufficientBuffer(doctor_id, requested_date, normalized, previous.time, gap)

    following = store.find_nearest_after(doctor_id, requested_date, normalized, exclude_id=exclude_appointment_id)
    if following is not None:
        gap = to_minutes(following.time) - requested_minutes
        if gap < BUFFER_MINUTES:
            raise InsufficientBuffer(doctor_id, requested_date, normalized, following.time, gap)

    logger.debug('Slot %s %s is free for doctor %s', requested_date, normalized, doctor_id)
    return normalized
