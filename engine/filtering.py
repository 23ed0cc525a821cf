"""Date window and client filtering with the derived shipment aggregates.

Everything in this module is a pure function of its inputs.  The
presentation layer calls :func:`derive_result` whenever the loaded rows,
the date window or the client selection change and renders the returned
:class:`FilteredResult` as-is; nothing is cached or updated in place.
"""

from __future__ import annotations

import json
import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from .dates import Clock, format_date, parse_date
from .records import DEFAULT_LABELS, FieldLabels, Record, field_values, iter_records

logger = logging.getLogger(__name__)

LEADING_FLOAT_PATTERN = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII)

Bound = Union[str, date, None]


def _parse_bound(value: Bound, name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        logger.warning("Ignoring invalid %s date %r", name, value)
        return None


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range, either side may be left open.

    Bounds are taken as entered: a start after the end is not swapped and
    simply matches nothing.
    """

    start: Bound = None
    end: Bound = None

    @property
    def active(self) -> bool:
        return not (self.start is None or self.start == "") or not (self.end is None or self.end == "")

    def bounds(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Return ``(start of first day, end of last day)``.

        Unparsable bounds are logged and returned as ``None``.
        """

        start = _parse_bound(self.start, "start")
        end = _parse_bound(self.end, "end")
        return (
            datetime.combine(start, time.min) if start is not None else None,
            datetime.combine(end, time.max) if end is not None else None,
        )


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


@dataclass(frozen=True)
class ClientSelection:
    """Client names to keep; an empty selection keeps every client."""

    names: FrozenSet[Any] = field(default_factory=frozenset)

    @classmethod
    def of(cls, names: Optional[Iterable[Any]]) -> "ClientSelection":
        if names is None:
            return cls()
        if isinstance(names, ClientSelection):
            return names
        return cls(frozenset(names))

    @property
    def active(self) -> bool:
        return bool(self.names)

    def __contains__(self, client: Any) -> bool:
        return _is_hashable(client) and client in self.names


def _in_window(
    record: Record,
    labels: FieldLabels,
    start: Optional[datetime],
    end: Optional[datetime],
    today: Optional[Clock],
) -> bool:
    raw = record.field(labels.date)
    if not raw.present:
        logger.debug("Record without %s field excluded: %s", labels.date, record.data)
        return False
    parsed = parse_date(raw.value, today=today)
    if not isinstance(parsed, date):
        logger.warning("Unusable date %r excluded", raw.value)
        return False
    moment = datetime.combine(parsed, time.min)
    if start is not None and moment < start:
        return False
    if end is not None and moment > end:
        return False
    return True


def filter_records(
    records: Any,
    window: Optional[DateWindow] = None,
    clients: Optional[Iterable[Any]] = None,
    labels: FieldLabels = DEFAULT_LABELS,
    today: Optional[Clock] = None,
) -> List[Mapping[str, Any]]:
    """Return the rows matching ``window`` and ``clients``.

    The date check runs only when the window has a bound, the client check
    only when the selection is non-empty.  Rows are returned as the original
    mapping objects, in input order.
    """

    window = window or DateWindow()
    selection = ClientSelection.of(clients)
    start, end = window.bounds() if window.active else (None, None)

    result = []
    total = 0
    for record in iter_records(records):
        total += 1
        if window.active and not _in_window(record, labels, start, end, today):
            continue
        if selection.active:
            client = record.field(labels.client)
            if not client.present or client.value not in selection:
                continue
        result.append(record.data)
    logger.debug("Filtered %d rows down to %d", total, len(result))
    return result


def distinct_clients(records: Any, labels: FieldLabels = DEFAULT_LABELS) -> List[Any]:
    """Sorted unique client names over the whole collection."""

    seen: Dict[Any, None] = {}
    for value in field_values(iter_records(records), labels.client):
        # List or dict cells (from JSON uploads) cannot be offered as options.
        if not _is_hashable(value):
            logger.debug("Skipping unhashable client value %r", value)
            continue
        seen.setdefault(value, None)
    return sorted(seen, key=str)


def coerce_price(value: Any) -> float:
    """Best-effort float conversion; ``0.0`` for anything unusable."""

    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        match = LEADING_FLOAT_PATTERN.match(value)
        if match is None:
            return 0.0
        number = float(match.group(1))
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def total_price(records: Any, labels: FieldLabels = DEFAULT_LABELS) -> float:
    return sum((coerce_price(record.raw(labels.price)) for record in iter_records(records)), 0.0)


def _cell_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_summary(records: Any, labels: FieldLabels = DEFAULT_LABELS) -> str:
    """One ``tracking destination weight<unit> price`` line per row."""

    lines = []
    for record in iter_records(records):
        tracking, destination, weight, price = (
            _cell_text(record.field(name).or_default(""))
            for name in (labels.tracking, labels.destination, labels.weight, labels.price)
        )
        lines.append(f"{tracking} {destination} {weight}{labels.weight_unit} {price}")
    return "\n".join(lines)


def display_records(
    records: Any,
    labels: FieldLabels = DEFAULT_LABELS,
    today: Optional[Clock] = None,
) -> List[Dict[str, Any]]:
    """Copy rows with the date column rewritten for display.

    The output format follows the raw text of the ``date_hint`` column, not
    the ``date`` column that gets rewritten.
    """

    rows = []
    for record in iter_records(records):
        parsed = parse_date(record.raw(labels.date), today=today)
        rows.append(record.copy_with({labels.date: format_date(parsed, record.raw(labels.date_hint))}))
    return rows


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return float(value)
    return str(value)


def _json_cell(value: Any) -> Any:
    # json.dumps would otherwise emit the bare NaN / Infinity tokens.
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def to_display_json(rows: Iterable[Mapping[str, Any]]) -> str:
    """Pretty-print rows as JSON with a two space indent.

    Non-finite floats are written as ``null``.
    """

    cleaned = [{key: _json_cell(value) for key, value in row.items()} for row in rows]
    return json.dumps(cleaned, ensure_ascii=False, indent=2, default=_json_default)


@dataclass(frozen=True)
class FilteredResult:
    """Everything the result panel shows for one filter state."""

    records: List[Mapping[str, Any]]
    total_price: float
    summary: str
    display: List[Dict[str, Any]]

    @property
    def count(self) -> int:
        return len(self.records)


def derive_result(
    records: Any,
    window: Optional[DateWindow] = None,
    clients: Optional[Iterable[Any]] = None,
    labels: FieldLabels = DEFAULT_LABELS,
    today: Optional[Clock] = None,
) -> FilteredResult:
    """Recompute the full result from ``(records, window, clients, labels)``."""

    filtered = filter_records(records, window, clients, labels=labels, today=today)
    return FilteredResult(
        records=filtered,
        total_price=total_price(filtered, labels),
        summary=format_summary(filtered, labels),
        display=display_records(filtered, labels, today=today),
    )
