"""Doctor weekly availability: lookup and declaration checks."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from medbook.scheduling.errors import DoctorNotFound, InvalidAppointmentData, MalformedTime, NoAvailability
from medbook.scheduling.slot_grid import (
    CLINIC_CLOSE_MINUTES,
    CLINIC_OPEN_MINUTES,
    WEEKDAYS,
    format_minutes,
    to_minutes,
    weekday_name,
)


@dataclass(frozen=True)
class WindowSpec:
    day_of_week: str
    start_time: str
    end_time: str


def find_open_window(windows: Iterable, weekday: str, value: str):
    """Return the window covering ``weekday`` at ``value``, or None.

    A slot is open when ``start <= slot < end``; the end of a window is not bookable.
    """
    slot_minutes = to_minutes(value)
    for window in windows:
        if window.day_of_week != weekday:
            continue
        if to_minutes(window.start_time) <= slot_minutes < to_minutes(window.end_time):
            return window
    return None


def check_doctor_availability(directory, doctor_id: int, requested_date: date, value: str):
    """Resolve the doctor and make sure one of their windows covers the slot."""
    doctor = directory.find_doctor_by_id(doctor_id)
    if doctor is None:
        raise DoctorNotFound(doctor_id)

    weekday = weekday_name(requested_date)
    if find_open_window(doctor.availability, weekday, value) is None:
        raise NoAvailability(doctor_id, weekday, value)
    return doctor


def validate_windows(windows: Iterable[WindowSpec]) -> list[WindowSpec]:
    normalized: list[WindowSpec] = []
    seen_days: set[str] = set()

    for window in windows:
        day = (window.day_of_week or '').strip().lower()
        if day not in WEEKDAYS:
            raise InvalidAppointmentData(f'Unknown day of week {window.day_of_week!r}.')
        if day in seen_days:
            raise InvalidAppointmentData(f'Availability for {day} is declared more than once.')
        seen_days.add(day)

        try:
            start = to_minutes(window.start_time)
            end = to_minutes(window.end_time)
        except MalformedTime as exc:
            raise InvalidAppointmentData(exc.message) from exc

        if start >= end:
            raise InvalidAppointmentData(f'Availability on {day} must end after it starts.')
        if start < CLINIC_OPEN_MINUTES or end > CLINIC_CLOSE_MINUTES:
            raise InvalidAppointmentData('Availability must fall between 08:00 and 17:00.')

        normalized.append(WindowSpec(day, format_minutes(start), format_minutes(end)))

    return sorted(normalized, key=lambda window: WEEKDAYS.index(window.day_of_week))
