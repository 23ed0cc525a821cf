"""Reusable Streamlit filter widgets."""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

import streamlit as st

from engine.filtering import DateWindow


def _iso(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def clear_filters() -> None:
    """Reset every filter widget to its empty state."""

    st.session_state.start_date = None
    st.session_state.end_date = None
    st.session_state.selected_clients = []


def render_date_filter() -> DateWindow:
    """Render start/end inputs and return the chosen window."""

    st.markdown("#### 日期范围筛选")
    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("开始日期", key="start_date", help="包含当天。留空表示不限。")
    with col2:
        end = st.date_input("结束日期", key="end_date", help="包含当天。留空表示不限。")
    if start and end and start > end:
        st.warning("开始日期晚于结束日期，筛选结果将为空。")
    return DateWindow(start=_iso(start), end=_iso(end))


def render_client_filter(all_clients: List[Any]) -> List[Any]:
    """Render the client multi-select; an empty choice means all clients."""

    st.markdown("#### 客户筛选 (可多选)")
    # A new upload may no longer contain previously selected clients.
    st.session_state.selected_clients = [
        c for c in st.session_state.get("selected_clients", []) if c in all_clients
    ]
    selected = st.multiselect(
        "客户",
        options=all_clients,
        key="selected_clients",
        format_func=str,
        help="不选择任何客户时显示全部客户的记录。",
    )
    st.caption("已选择: " + ("、".join(str(c) for c in selected) if selected else "全部"))
    return selected
