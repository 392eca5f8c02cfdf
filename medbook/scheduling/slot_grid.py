"""Structural rules for appointment start times.

The clinic day runs from 08:00 to 17:00 in 30-minute slots; 17:00 closes the day and is
never a bookable start.
"""

import re
from datetime import date

from medbook.scheduling.errors import InvalidGranularity, MalformedTime, OutsideClinicHours, PastDate

TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$')

CLINIC_OPEN_MINUTES = 8 * 60
CLINIC_CLOSE_MINUTES = 17 * 60
SLOT_MINUTES = 30

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


def parse_time(value: str) -> tuple[int, int]:
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise MalformedTime(str(value))
    return int(match.group(1)), int(match.group(2))


def to_minutes(value: str) -> int:
    hour, minute = parse_time(value)
    return hour * 60 + minute


def format_minutes(total_minutes: int) -> str:
    return f'{total_minutes // 60:02d}:{total_minutes % 60:02d}'


def normalize_time(value: str) -> str:
    """Return ``value`` zero padded so stored times sort lexicographically."""
    return format_minutes(to_minutes(value))


def weekday_name(on_date: date) -> str:
    return WEEKDAYS[on_date.weekday()]


def iterate_day_slots() -> list[str]:
    return [
        format_minutes(minutes)
        for minutes in range(CLINIC_OPEN_MINUTES, CLINIC_CLOSE_MINUTES, SLOT_MINUTES)
    ]


def validate_slot(requested_date: date, value: str, today: date) -> str:
    """Check that ``(requested_date, value)`` is a legal slot, independent of bookings.

    Returns the normalised ``HH:MM`` time. Checks run in order: format, clinic hours,
    granularity, then past date.
    """
    hour, minute = parse_time(value)
    normalized = format_minutes(hour * 60 + minute)

    if hour < 8 or hour >= 17:
        raise OutsideClinicHours(normalized)

    if minute % SLOT_MINUTES != 0:
        raise InvalidGranularity(normalized)

    if requested_date < today:
        raise PastDate(requested_date, today)

    return normalized
