from __future__ import annotations

import streamlit as st

from utils.settings import LOG_LEVELS, configure_logging, field_labels, save_settings, settings_path
from utils.state import bootstrap_state

FIELD_NAMES = {
    "date": "日期列",
    "date_hint": "日期格式参考列",
    "client": "客户列",
    "price": "价格列",
    "tracking": "运单号列",
    "destination": "目的地列",
    "weight": "重量列",
    "weight_unit": "重量单位",
}


def main() -> None:
    st.set_page_config(page_title="字段设置", layout="wide")
    bootstrap_state()

    st.title("字段设置")
    st.caption("表格列名随导出语言而变化时，在这里调整字段映射。保存后立即生效。")

    settings = st.session_state.settings
    fields = settings.get("fields", {})

    st.subheader("列名映射")
    values = {}
    col1, col2 = st.columns(2)
    for index, (key, label) in enumerate(FIELD_NAMES.items()):
        with (col1 if index % 2 == 0 else col2):
            values[key] = st.text_input(label, value=str(fields.get(key, "")), key=f"field_{key}")

    current_level = settings.get("log_level", "INFO")
    log_level = st.selectbox(
        "日志级别",
        LOG_LEVELS,
        index=LOG_LEVELS.index(current_level) if current_level in LOG_LEVELS else LOG_LEVELS.index("INFO"),
    )

    if st.button("保存设置"):
        # Blank inputs keep the previous column name.
        updated_fields = {key: value.strip() or fields.get(key, "") for key, value in values.items()}
        # The weight unit is appended verbatim, so surrounding spaces are kept.
        updated_fields["weight_unit"] = values["weight_unit"]
        new_settings = {**settings, "fields": updated_fields, "log_level": log_level}
        try:
            save_settings(new_settings)
        except OSError as exc:
            st.error(f"保存失败: {exc}")
            return
        configure_logging(log_level)
        st.session_state.settings = new_settings
        st.session_state.labels = field_labels(new_settings)
        st.success(f"设置已保存到 {settings_path()}。")


if __name__ == "__main__":
    main()
