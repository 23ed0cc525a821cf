"""Date normalisation for shipment sheets.

Spreadsheet exports mix several date encodings in the same column: day
first text (``24.12.2024``, ``24/12/2024``), year first text
(``2024-12-24``) and raw Excel serial numbers.  :func:`parse_date` turns
any of them into a :class:`datetime.date` and never raises; when nothing
matches it returns today's date and records the fact in the returned
:class:`DateParseResult` and in the log.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, List, Optional, Sequence, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100

EXCEL_EPOCH = date(1900, 1, 1)
# Serial 60 is the 1900-02-29 that Excel wrongly believes exists.
EXCEL_PHANTOM_LEAP_SERIAL = 60
EXCEL_PHANTOM_LEAP_DATE = date(1900, 2, 28)

LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)", re.ASCII)
YEAR_FIRST_PATTERN = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}", re.ASCII)

Clock = Callable[[], date]
TextRule = Callable[[str], Optional[date]]


@dataclass(frozen=True)
class DateParseResult:
    """Outcome of :func:`parse_date_result`.

    Attributes
    ----------
    value : date
        The parsed calendar day, or today when ``fallback`` is set.
    rule : str
        Name of the rule that produced ``value`` (``"fallback"`` for the
        today sentinel).
    """

    value: date
    rule: str

    @property
    def fallback(self) -> bool:
        return self.rule == "fallback"


def _leading_int(text: str) -> Optional[int]:
    """Read the leading integer of ``text`` ignoring trailing characters."""

    match = LEADING_INT_PATTERN.match(text)
    if match is None:
        return None
    return int(match.group(1))


def _build_date(year: Optional[int], month: Optional[int], day: Optional[int]) -> Optional[date]:
    if year is None or month is None or day is None:
        return None
    if not (1 <= day <= 31 and 1 <= month <= 12 and MIN_YEAR <= year <= MAX_YEAR):
        logger.debug("Date parts out of range: year=%s month=%s day=%s", year, month, day)
        return None
    # Days past the end of the month roll over (31.02 -> 02.03).
    return date(year, month, 1) + timedelta(days=day - 1)


def _from_day_first(parts: Sequence[str]) -> Optional[date]:
    day, month, year = (_leading_int(p) for p in parts)
    return _build_date(year, month, day)


def _from_year_first(parts: Sequence[str]) -> Optional[date]:
    year, month, day = (_leading_int(p) for p in parts)
    return _build_date(year, month, day)


def _split3(text: str, sep: str) -> Optional[List[str]]:
    if sep not in text:
        return None
    parts = text.split(sep)
    if len(parts) != 3:
        logger.debug("Expected 3 parts around %r in %r, got %d", sep, text, len(parts))
        return None
    return parts


def parse_dotted(text: str) -> Optional[date]:
    """``DD.MM.YYYY``."""

    parts = _split3(text, ".")
    if parts is None:
        return None
    return _from_day_first(parts)


def parse_dashed(text: str) -> Optional[date]:
    """``YYYY-MM-DD`` or ``DD-MM-YYYY``."""

    parts = _split3(text, "-")
    if parts is None:
        return None
    if len(parts[0]) == 4:
        parsed = _from_year_first(parts)
        if parsed is not None:
            return parsed
    if len(parts[2]) == 4:
        return _from_day_first(parts)
    return None


def parse_slashed(text: str) -> Optional[date]:
    """``DD/MM/YYYY`` or ``YYYY/MM/DD``."""

    parts = _split3(text, "/")
    if parts is None:
        return None
    if len(parts[2]) == 4:
        parsed = _from_day_first(parts)
        if parsed is not None:
            return parsed
    if len(parts[0]) == 4:
        return _from_year_first(parts)
    return None


# Order matters: a value containing both "." and "-" tries the dotted form
# first and only moves on when it does not validate.
TEXT_RULES: Tuple[Tuple[str, TextRule], ...] = (
    ("dotted", parse_dotted),
    ("dashed", parse_dashed),
    ("slashed", parse_slashed),
)


def parse_excel_serial(serial: float) -> Optional[date]:
    """Convert an Excel 1900-system serial number into a date.

    Serial 1 is 1900-01-01.  Excel counts a 29 February 1900 that never
    existed (serial 60); it is mapped to 1900-02-28 and every later serial
    is shifted back by one extra day.  Fractions (time of day) are dropped.
    """

    if not math.isfinite(serial) or serial < 1:
        return None
    day_number = math.floor(serial)
    if day_number == EXCEL_PHANTOM_LEAP_SERIAL:
        return EXCEL_PHANTOM_LEAP_DATE
    offset = day_number - 2 if day_number > EXCEL_PHANTOM_LEAP_SERIAL else day_number - 1
    try:
        return EXCEL_EPOCH + timedelta(days=offset)
    except OverflowError:
        logger.debug("Excel serial %s is beyond the supported calendar", serial)
        return None


def _is_serial(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def parse_date_result(value: Any, today: Optional[Clock] = None) -> DateParseResult:
    """Parse ``value`` and report which rule succeeded."""

    clock = today or date.today

    if isinstance(value, datetime) and not pd.isna(value):
        return DateParseResult(value.date(), "datetime")
    if isinstance(value, date) and not isinstance(value, datetime):
        return DateParseResult(value, "date")

    if isinstance(value, str) and value:
        for name, rule in TEXT_RULES:
            parsed = rule(value)
            if parsed is not None:
                logger.debug("Parsed %r with %s rule -> %s", value, name, parsed)
                return DateParseResult(parsed, name)
        logger.warning("Unrecognised date text %r, using today", value)
    elif _is_serial(value):
        parsed = parse_excel_serial(float(value))
        if parsed is not None:
            logger.debug("Parsed Excel serial %r -> %s", value, parsed)
            return DateParseResult(parsed, "excel_serial")
        logger.warning("Invalid Excel serial %r, using today", value)
    else:
        logger.warning("Unsupported date value %r (%s), using today", value, type(value).__name__)

    return DateParseResult(clock(), "fallback")


def parse_date(value: Any, today: Optional[Clock] = None) -> date:
    """Return the calendar day encoded by ``value``.

    Parameters
    ----------
    value:
        Text (``DD.MM.YYYY``, ``YYYY-MM-DD``, ``DD-MM-YYYY``,
        ``DD/MM/YYYY``, ``YYYY/MM/DD``), an Excel serial number, or a
        ``date``/``datetime`` which passes through.
    today:
        Optional clock used for the fallback, ``date.today`` by default.
    """

    return parse_date_result(value, today=today).value


def format_date(value: date, original: Any = None) -> str:
    """Render ``value`` in the format family of ``original``.

    Year first originals (``2024-03-15``, ``2024/3/15``) give
    ``YYYY-MM-DD``; anything else gives ``DD.MM.YYYY``.
    """

    day = f"{value.day:02d}"
    month = f"{value.month:02d}"
    if isinstance(original, str) and YEAR_FIRST_PATTERN.match(original.strip()):
        return f"{value.year}-{month}-{day}"
    return f"{day}.{month}.{value.year}"
