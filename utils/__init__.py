"""Loading, settings and Streamlit helpers for the shipment dashboard."""

from .data_loader import (
    load_records,
    load_supported_file,
    records_from_dataframe,
    records_from_json,
)
from .settings import configure_logging, field_labels, load_settings, save_settings

__all__ = [
    "load_records",
    "load_supported_file",
    "records_from_dataframe",
    "records_from_json",
    "configure_logging",
    "field_labels",
    "load_settings",
    "save_settings",
]
