"""Date normalisation and filtering engine for shipment sheets."""

from .dates import DateParseResult, format_date, parse_date, parse_date_result
from .filtering import (
    ClientSelection,
    DateWindow,
    FilteredResult,
    derive_result,
    distinct_clients,
    filter_records,
    format_summary,
    to_display_json,
    total_price,
)
from .records import DEFAULT_LABELS, FieldLabels, Record

__all__ = [
    "DateParseResult",
    "format_date",
    "parse_date",
    "parse_date_result",
    "ClientSelection",
    "DateWindow",
    "FilteredResult",
    "derive_result",
    "distinct_clients",
    "filter_records",
    "format_summary",
    "to_display_json",
    "total_price",
    "DEFAULT_LABELS",
    "FieldLabels",
    "Record",
]
