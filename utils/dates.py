"""
utils/dates.py
--------------
Small calendar helpers used by the analytics, budget and recurrence services.
"""

import re
from datetime import date, datetime, timedelta

from utils.errors import ValidationError

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value, field: str = "date") -> date:
    """
    Coerce a value into a ``date``.

    Accepts ``date`` objects, ``datetime`` objects (the time part is dropped)
    and ISO ``YYYY-MM-DD`` strings.

    Raises:
        ValidationError: If the value is missing or malformed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Valid {field} is required (YYYY-MM-DD), got {value!r}")


def week_start(d: date) -> date:
    """Return the Sunday on or before ``d``."""
    # date.weekday(): Monday=0 ... Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def month_start(d: date) -> date:
    return d.replace(day=1)


def year_start(d: date) -> date:
    return d.replace(month=1, day=1)
