"""
Identity and derived-field helpers for patient records.

These are small pure functions shared by the registry and the registration
form: patient id generation, age calculation and birth date checks.
"""
# dentalcare/utils.py

import time
from datetime import date, datetime

ID_PREFIX = "PAT-"
EARLIEST_BIRTH_DATE = date(1900, 1, 1)


def generate_id(now_ms: int = None) -> str:
    """Builds a patient id from the last six digits of the epoch millisecond clock.

    Two registrations within the same millisecond (or exactly 10**6 ms apart)
    produce the same id; this is tolerated for a single low-volume practice.

    Args:
        now_ms (int, optional): Epoch milliseconds to use instead of the current time.

    Returns:
        str: An id such as ``PAT-123456``.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{ID_PREFIX}{str(int(now_ms))[-6:].zfill(6)}"


def parse_date(value):
    """Coerces a date, datetime or ISO string into a `date`. Empty values give None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    # Accept full ISO timestamps as well as plain dates.
    return datetime.fromisoformat(text.replace('Z', '+00:00')).date() if 'T' in text else date.fromisoformat(text)


def compute_age(birth_date, as_of=None) -> int:
    """Calculates age in whole years.

    The calendar-year difference is decremented when `as_of` falls before the
    birthday in that year.

    Args:
        birth_date: The date of birth (date, datetime or ISO string).
        as_of (optional): The reference date. Defaults to today.

    Returns:
        int: The age in years.
    """
    born = parse_date(birth_date)
    today = parse_date(as_of) if as_of is not None else date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def validate_birth_date(value, today=None):
    """Checks that a birth date lies between 1900-01-01 and today.

    Returns:
        str or None: A reason string when the date is rejected, None when it is acceptable.
    """
    try:
        born = parse_date(value)
    except (TypeError, ValueError):
        return "not a valid date"
    if born is None:
        return None
    today = parse_date(today) if today is not None else date.today()
    if born > today:
        return "cannot be in the future"
    if born < EARLIEST_BIRTH_DATE:
        return "cannot be before 1900-01-01"
    return None
