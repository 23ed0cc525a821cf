"""Typed access to loosely shaped shipment rows.

Rows come straight from a spreadsheet: the first row provides the field
names and every cell may be text, a number, a timestamp or empty.  The
helpers here make the "is this field actually filled in" question explicit
so that the filter and aggregate code never has to guess.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Mapping

import pandas as pd


@dataclass(frozen=True)
class FieldLabels:
    """Column labels of the shipment sheet.

    Attributes
    ----------
    date : str
        Column holding the shipment date used for window filtering.
    date_hint : str
        Column whose raw text decides the display format of the date.
    client : str
        Column with the client name.
    price : str
        Column with the shipment price.
    tracking : str
        Column with the tracking number.
    destination : str
        Column with the destination.
    weight : str
        Column with the (volumetric) weight.
    weight_unit : str
        Unit label appended to the weight in the text summary.
    """

    date: str = "日期"
    date_hint: str = "DATE"
    client: str = "CLIENT"
    price: str = "PRIX"
    tracking: str = "NUMÉRO DE SUIVI"
    destination: str = "DESTINATION"
    weight: str = "VOLUME POIDS"
    weight_unit: str = "kg"


DEFAULT_LABELS = FieldLabels()


def is_blank(value: Any) -> bool:
    """Return ``True`` for values that count as an empty cell."""

    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class FieldValue:
    """Result of looking up a field: either present with a value or absent."""

    present: bool
    value: Any = None

    def or_default(self, default: Any = "") -> Any:
        return self.value if self.present else default


ABSENT = FieldValue(present=False)


@dataclass(frozen=True)
class Record:
    """Read-only view over a single spreadsheet row."""

    data: Mapping[str, Any] = field(default_factory=dict)

    def field(self, name: str) -> FieldValue:
        if name not in self.data:
            return ABSENT
        value = self.data[name]
        if is_blank(value):
            return ABSENT
        return FieldValue(present=True, value=value)

    def raw(self, name: str) -> Any:
        """Return the cell as stored, ``None`` when the column is missing."""

        return self.data.get(name)

    def copy_with(self, changes: Mapping[str, Any]) -> dict:
        """Return a shallow ``dict`` copy with ``changes`` applied."""

        updated = dict(self.data)
        updated.update(changes)
        return updated


def as_rows(records: Any) -> List[Mapping[str, Any]]:
    """Coerce an incoming collection to a list, ``[]`` when unusable.

    ``None``, strings, single mappings and other non-sequence values are
    treated as an empty collection.  Items are kept as-is, including
    ``None`` entries, so that callers decide how to skip them.
    """

    if records is None or isinstance(records, (str, bytes, Mapping)):
        return []
    if isinstance(records, pd.DataFrame):
        return records.to_dict(orient="records")
    if isinstance(records, (list, tuple)):
        return list(records)
    return []


def iter_records(records: Any) -> Iterator[Record]:
    """Yield :class:`Record` views, skipping ``None`` and non-mapping items."""

    for item in as_rows(records):
        if isinstance(item, Mapping):
            yield Record(item)


def field_values(records: Iterable[Record], name: str) -> List[Any]:
    """Return the present values of ``name`` across ``records``."""

    values = []
    for record in records:
        value = record.field(name)
        if value.present:
            values.append(value.value)
    return values
