"""Session state helpers shared across pages."""

from __future__ import annotations

from typing import Optional

import streamlit as st

from .settings import configure_logging, field_labels, load_settings


def bootstrap_state(settings_path: Optional[str] = None) -> None:
    """Ensure key session state entries exist."""

    if "settings" not in st.session_state:
        settings = load_settings(settings_path)
        configure_logging(settings["log_level"])
        st.session_state.settings = settings
        st.session_state.labels = field_labels(settings)
    if "records" not in st.session_state:
        st.session_state.records = None
    if "source_name" not in st.session_state:
        st.session_state.source_name = ""
    if "start_date" not in st.session_state:
        st.session_state.start_date = None
    if "end_date" not in st.session_state:
        st.session_state.end_date = None
    if "selected_clients" not in st.session_state:
        st.session_state.selected_clients = []
