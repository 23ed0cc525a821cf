from __future__ import annotations

import io
import logging
from typing import Any, Dict, List

import streamlit as st

from engine.filtering import derive_result, distinct_clients, to_display_json
from utils.data_loader import load_records, records_from_json
from utils.forms import clear_filters, render_client_filter, render_date_filter
from utils.state import bootstrap_state

APP_TITLE = "运单筛选与汇总"

logger = logging.getLogger(__name__)


def _load_uploaded_data(uploaded_file: io.BytesIO) -> List[Dict[str, Any]]:
    name = uploaded_file.name.lower()
    if name.endswith(".json"):
        return records_from_json(uploaded_file.getvalue().decode("utf-8"))
    if name.endswith(".csv") or name.endswith(".txt"):
        return load_records(uploaded_file, source="csv")
    return load_records(uploaded_file, source="excel")


def main() -> None:
    st.set_page_config(page_title=APP_TITLE, layout="wide")
    bootstrap_state()
    labels = st.session_state.labels

    st.title(APP_TITLE)
    st.caption("上传运单表格，按日期范围和客户筛选，生成文本汇总与总价格。")

    with st.sidebar.expander("数据上传", expanded=True):
        st.markdown("读取第一个工作表，第一行作为字段名。")
        upload = st.file_uploader("选择文件", type=["xlsx", "xls", "csv", "json"])
        source_key = f"{upload.name}:{upload.size}" if upload is not None else ""
        if upload is not None and source_key != st.session_state.source_name:
            try:
                st.session_state.records = _load_uploaded_data(upload)
                st.session_state.source_name = source_key
                st.success(f"已读取 {len(st.session_state.records)} 条记录。")
            except Exception as exc:  # pragma: no cover - user input dependent
                logger.exception("Failed to load %s", upload.name)
                st.error(f"读取失败: {exc}")

    records = st.session_state.records
    if records is None:
        st.info("请先在左侧上传 Excel 文件。")
        return

    st.subheader("筛选选项")
    window = render_date_filter()
    # Client options always come from the full upload, not the filtered rows.
    all_clients = distinct_clients(records, labels)
    selected = render_client_filter(all_clients)
    st.button("清除所有筛选", on_click=clear_filters)

    result = derive_result(records, window, selected, labels=labels)

    st.subheader(f"筛选结果 ({result.count} 条记录)")
    st.markdown("#### 格式化输出")
    st.text_area("格式化输出", value=result.summary, height=200, disabled=True, label_visibility="collapsed")
    st.metric("总价格", f"{result.total_price:.2f}")

    st.markdown("#### JSON 格式")
    st.code(to_display_json(result.display), language="json")
    st.download_button(
        "下载筛选结果 JSON",
        data=to_display_json(result.display).encode("utf-8"),
        file_name="filtered.json",
        mime="application/json",
    )


if __name__ == "__main__":
    main()
