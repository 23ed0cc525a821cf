from __future__ import annotations

import streamlit as st

from engine.filtering import display_records, to_display_json
from utils.state import bootstrap_state


def main() -> None:
    st.set_page_config(page_title="原始数据", layout="wide")
    bootstrap_state()

    st.title("原始数据")
    st.caption("上传文件中的全部记录，日期已统一格式，不受筛选条件影响。")

    records = st.session_state.get("records")
    if not records:
        st.warning("尚未读取数据。请在首页上传文件。")
        return

    rows = display_records(records, st.session_state.labels)
    st.subheader(f"原始 JSON 数据 ({len(records)} 条记录)")
    st.code(to_display_json(rows), language="json")


if __name__ == "__main__":
    main()
