"""
Date expression parsing.

Turns user tokens into calendar dates. Understood forms, case-insensitive:

- literal ISO dates: ``2024-03-05``
- ``today``, ``tomorrow``, ``yesterday``
- ``<n> days``, ``in <n> weeks``, ``<n> months ago`` (days/weeks/months/years)
- ``next week``, ``last month``, ``next friday``, ``last mon``
- weekday names (``friday``, ``fri``): the next such day, today included
- month names (``march``, ``mar``): the 1st of that month this year
- anything else containing a digit that python-dateutil can parse,
  e.g. ``5 march``, ``march 5 2025``, ``05/03/2025``
"""

import re
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

from .errors import InvalidIdentifierError

ISO_FORMAT = "%Y-%m-%d"

WEEKDAYS = {
    "monday": MO, "mon": MO,
    "tuesday": TU, "tue": TU, "tues": TU,
    "wednesday": WE, "wed": WE,
    "thursday": TH, "thu": TH, "thurs": TH,
    "friday": FR, "fri": FR,
    "saturday": SA, "sat": SA,
    "sunday": SU, "sun": SU,
}

MONTHS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}

UNITS = {
    "day": "days", "days": "days",
    "week": "weeks", "weeks": "weeks",
    "month": "months", "months": "months",
    "year": "years", "years": "years",
}

DATE_KEYWORDS = frozenset(
    set(WEEKDAYS) | set(MONTHS) | set(RELATIVE_DAYS) | {"next", "last", "ago", "in"}
)

_OFFSET_RE = re.compile(r"^(?:in\s+)?([+-]?\d+)\s+(\w+?)(\s+ago)?$")
_STEP_RE = re.compile(r"^(next|last)\s+(\w+)$")
_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_date_keyword(token: str) -> bool:
    """True if the token is a word the date parser gives meaning to."""
    return token.strip().lower() in DATE_KEYWORDS


def _normalize(token: str) -> str:
    return " ".join(token.strip().lower().split())


def _offset(unit_word: str, amount: int) -> Optional[relativedelta]:
    unit = UNITS.get(unit_word)
    if unit is None:
        return None
    return relativedelta(**{unit: amount})


def _shift(today: date, delta: relativedelta, token: str) -> date:
    try:
        return today + delta
    except (ValueError, OverflowError) as e:
        raise InvalidIdentifierError(f"Date out of range '{token}'", token=token) from e


def parse_date(token: str, today: Optional[date] = None) -> date:
    """
    Parse a date expression relative to ``today``.

    Args:
        token: User supplied expression
        today: Reference date (default: the current local date)

    Returns:
        The calendar date the expression denotes

    Raises:
        InvalidIdentifierError: If the expression is not a date
    """
    today = today or date.today()
    text = _normalize(token)
    if not text:
        raise InvalidIdentifierError("Empty date expression", token=token)

    if _ISO_RE.match(text):
        try:
            return datetime.strptime(text, ISO_FORMAT).date()
        except ValueError as e:
            raise InvalidIdentifierError(f"Invalid date '{token}'", token=token) from e

    if text in RELATIVE_DAYS:
        return _shift(today, relativedelta(days=RELATIVE_DAYS[text]), token)

    if text in WEEKDAYS:
        return _shift(today, relativedelta(weekday=WEEKDAYS[text](+1)), token)

    if text in MONTHS:
        return date(today.year, MONTHS[text], 1)

    match = _OFFSET_RE.match(text)
    if match:
        amount = int(match.group(1))
        if match.group(3):
            amount = -amount
        delta = _offset(match.group(2), amount)
        if delta is not None:
            return _shift(today, delta, token)

    match = _STEP_RE.match(text)
    if match:
        sign = 1 if match.group(1) == "next" else -1
        word = match.group(2)
        if word in WEEKDAYS:
            # "next friday" never means today
            return _shift(today, relativedelta(days=sign, weekday=WEEKDAYS[word](sign)), token)
        delta = _offset(word, sign)
        if delta is not None:
            return _shift(today, delta, token)

    if any(ch.isdigit() for ch in text):
        try:
            default = datetime(today.year, today.month, today.day)
            return date_parser.parse(text, default=default).date()
        except (ValueError, OverflowError) as e:
            raise InvalidIdentifierError(f"Invalid date expression '{token}'", token=token) from e

    raise InvalidIdentifierError(f"Invalid date expression '{token}'", token=token)


def try_parse_date(token: str, today: Optional[date] = None) -> Optional[date]:
    """Like parse_date, but returns None instead of raising."""
    try:
        return parse_date(token, today=today)
    except InvalidIdentifierError:
        return None


def format_date(value: date, fmt: str = ISO_FORMAT) -> str:
    return value.strftime(fmt)
