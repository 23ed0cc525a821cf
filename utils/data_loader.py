"""Reading uploaded shipment sheets into plain row mappings.

The engine works on a list of dictionaries, one per spreadsheet row, keyed
by the header cells of the first row.  This module turns user supplied
Excel or CSV files into that shape.  The functions are side effect free so
that they can be unit tested without Streamlit.
"""

from __future__ import annotations

import io
from io import BufferedReader
import json
import logging
import pathlib
from typing import Any, Dict, List, Optional, Union

import chardet
import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_FILE_TYPES = {"csv", "excel"}

FileLike = Union[io.BytesIO, BufferedReader]


def _load_csv(data: io.BytesIO, **kwargs) -> pd.DataFrame:
    """Load a CSV file with encoding detection."""

    raw = data.getvalue()
    if not raw:
        raise ValueError("空的CSV文件。")
    encoding = chardet.detect(raw[:4096])["encoding"] or "utf-8"
    logger.debug("Reading CSV with encoding %s", encoding)
    data.seek(0)
    return pd.read_csv(data, encoding=encoding, **kwargs)


def _load_excel(data: io.BytesIO, **kwargs) -> pd.DataFrame:
    """Load the first sheet of an Excel workbook, first row as header."""

    kwargs.setdefault("sheet_name", 0)
    return pd.read_excel(data, **kwargs)


def _detect_source(file: Union[FileLike, str, pathlib.Path]) -> str:
    if isinstance(file, (str, pathlib.Path)):
        candidate_name: Optional[str] = str(file)
    else:
        candidate_name = getattr(file, "name", None)
    if candidate_name is None:
        raise ValueError("请指定 source，或传入文件路径字符串。")
    lower_name = candidate_name.lower()
    if lower_name.endswith((".csv", ".txt")):
        return "csv"
    if lower_name.endswith((".xlsx", ".xlsm", ".xls")):
        return "excel"
    raise ValueError("不支持的文件扩展名。")


def load_supported_file(
    file: Union[FileLike, str, pathlib.Path],
    source: Optional[str] = None,
    **kwargs,
) -> pd.DataFrame:
    """Load a CSV or Excel file into a pandas dataframe.

    Parameters
    ----------
    file:
        Either a file-like object (``BytesIO``, Streamlit upload) or a path.
    source:
        Optional explicit source type (``"csv"`` or ``"excel"``).  When
        ``None`` the type is derived from the file extension.
    """

    source = (source or _detect_source(file)).lower()
    if source not in SUPPORTED_FILE_TYPES:
        raise ValueError(f"未知的数据来源: {source}")

    if isinstance(file, (str, pathlib.Path)):
        with open(file, "rb") as f:
            data = io.BytesIO(f.read())
    else:
        data = file
    if source == "csv":
        return _load_csv(data, **kwargs)
    return _load_excel(data, **kwargs)


def records_from_dataframe(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a dataframe into row dictionaries.

    Fully empty rows are dropped and empty cells become ``None`` so that the
    engine sees them as missing fields.
    """

    if df is None or df.empty:
        return []
    cleaned = df.dropna(how="all")
    cleaned = cleaned.astype(object).where(pd.notna(cleaned), None)
    cleaned.columns = [str(col) for col in cleaned.columns]
    return cleaned.to_dict(orient="records")


def load_records(
    file: Union[FileLike, str, pathlib.Path],
    source: Optional[str] = None,
    **kwargs,
) -> List[Dict[str, Any]]:
    """Load a file and return its rows, see :func:`records_from_dataframe`."""

    records = records_from_dataframe(load_supported_file(file, source=source, **kwargs))
    logger.info("Loaded %d rows from %s", len(records), getattr(file, "name", file))
    return records


def records_from_json(text: str) -> List[Dict[str, Any]]:
    """Load rows from a JSON payload.

    Accepts either a list of objects or a dictionary with a ``"data"`` key.
    Lets an exported JSON view be loaded again.
    """

    payload = json.loads(text)
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]
    if not isinstance(payload, list):
        raise ValueError("JSON 数据必须是对象数组。")
    return [row for row in payload if isinstance(row, dict)]
