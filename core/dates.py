"""DD/MM/YYYY expiry helpers.

Expiries are stored as display strings, either ``DD/MM/YYYY`` or the
sentinel ``until death``.
"""

from __future__ import annotations

import re
from datetime import date
from enum import StrEnum

from core.errors import ValidationError

UNTIL_DEATH = "until death"
MIN_YEAR = 1980
MAX_YEAR = 2100

DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$", re.ASCII)
_NON_DIGIT = re.compile(r"\D", re.ASCII)


class ExpiryStatus(StrEnum):
    CURRENT = "current"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


def is_until_death(value: str) -> bool:
    return value.strip() == UNTIL_DEATH


def format_date(value: date) -> str:
    return f"{value.day:02d}/{value.month:02d}/{value.year:04d}"


def parse_date(value: str) -> date:
    """Parse ``DD/MM/YYYY``; raises ValueError on bad shape or calendar."""
    if not DATE_PATTERN.match(value):
        raise ValueError(f"not a DD/MM/YYYY date: {value!r}")
    day, month, year = (int(part) for part in value.split("/"))
    return date(year, month, day)


def format_date_input(raw: str, *, min_year: int = MIN_YEAR, max_year: int = MAX_YEAR) -> str:
    """Mask partial keyboard input into ``DD/MM/YYYY`` while typing.

    Complete day, month and year groups are clamped into range; slashes are
    inserted once the following group has started.
    """
    clean = _NON_DIGIT.sub("", raw)
    day, month, year = clean[0:2], clean[2:4], clean[4:8]

    if len(day) == 2:
        day = f"{min(max(int(day), 1), 31):02d}"
    if len(month) == 2:
        month = f"{min(max(int(month), 1), 12):02d}"
    if len(year) == 4:
        year = str(min(max(int(year), min_year), max_year))

    result = day
    if len(clean) >= 3:
        result += f"/{month}"
    if len(clean) >= 5:
        result += f"/{year}"
    return result


def default_expiry(today: date | None = None) -> str:
    """First of the month, one year and one month from ``today``."""
    today = today or date.today()
    year, month = today.year, today.month + 1
    if month > 12:
        year, month = year + 1, 1
    return format_date(date(year + 1, month, 1))


def check_expiry_date(
    value: str,
    *,
    field: str = "expiry_date",
    allow_until_death: bool = True,
    allow_blank: bool = False,
    min_year: int = MIN_YEAR,
    max_year: int = MAX_YEAR,
) -> None:
    """Raise ValidationError unless ``value`` is an acceptable expiry."""
    if allow_blank and not value.strip():
        return
    if allow_until_death and is_until_death(value):
        return
    if not value.strip():
        raise ValidationError(field, "Expiry Date is required and must be DD/MM/YYYY.")
    if not DATE_PATTERN.match(value):
        suffix = " or 'until death'" if allow_until_death else ""
        raise ValidationError(field, f"Expiry Date must be DD/MM/YYYY{suffix}.")

    day, month, year = (int(part) for part in value.split("/"))
    if not 1 <= day <= 31:
        raise ValidationError(field, "Day must be between 1 and 31")
    if not 1 <= month <= 12:
        raise ValidationError(field, "Month must be between 1 and 12")
    if not min_year <= year <= max_year:
        raise ValidationError(field, f"Year must be between {min_year} and {max_year}")
    try:
        date(year, month, day)
    except ValueError as e:
        raise ValidationError(field, "Invalid calendar date.") from e


def extend_one_year_round_up(value: str, *, max_year: int = MAX_YEAR, field: str = "expiry_date") -> str:
    """Add one year, then round up to the 1st of the next month unless already on a 1st.

    ``until death`` is returned unchanged. A 29 February start lands on
    1 March of a non-leap year, which is already a month boundary.
    """
    if is_until_death(value):
        return value
    if not DATE_PATTERN.match(value):
        raise ValidationError(field, "Please enter a valid DD/MM/YYYY date before adding a year.")
    try:
        start = parse_date(value)
    except ValueError as e:
        raise ValidationError(field, "Invalid calendar date detected.") from e

    try:
        bumped = start.replace(year=start.year + 1)
    except ValueError:
        bumped = date(start.year + 1, 3, 1)

    if bumped.day != 1:
        if bumped.month == 12:
            bumped = date(bumped.year + 1, 1, 1)
        else:
            bumped = date(bumped.year, bumped.month + 1, 1)

    if bumped.year > max_year:
        raise ValidationError(field, f"Cannot set expiry past year {max_year}.")
    return format_date(bumped)


def expiry_status(value: str, today: date | None = None) -> ExpiryStatus:
    """Presentation-only classification of an expiry against today."""
    if not value.strip() or is_until_death(value):
        return ExpiryStatus.CURRENT
    try:
        expiry = parse_date(value)
    except ValueError:
        return ExpiryStatus.UNKNOWN
    today = today or date.today()
    return ExpiryStatus.CURRENT if expiry >= today else ExpiryStatus.EXPIRED
