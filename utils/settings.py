"""YAML backed settings: sheet column labels and logging."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from engine.records import DEFAULT_LABELS, FieldLabels

SETTINGS_ENV = "SHIPMENT_SETTINGS"
DEFAULT_SETTINGS_PATH = "config/settings.yaml"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def settings_path(path: Optional[str] = None) -> Path:
    return Path(path or os.getenv(SETTINGS_ENV) or DEFAULT_SETTINGS_PATH)


def default_settings() -> Dict[str, Any]:
    return {"fields": asdict(DEFAULT_LABELS), "log_level": "INFO"}


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings from YAML, falling back to defaults for missing keys."""

    settings = default_settings()
    file_path = settings_path(path)
    if not file_path.exists():
        return settings
    with open(file_path, "r", encoding="utf-8") as fp:
        loaded = yaml.safe_load(fp) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"设置文件格式不正确: {file_path}")
    settings["fields"].update(loaded.get("fields") or {})
    if loaded.get("log_level"):
        settings["log_level"] = str(loaded["log_level"]).upper()
    return settings


def save_settings(settings: Dict[str, Any], path: Optional[str] = None) -> None:
    """Persist settings back to YAML."""

    file_path = settings_path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as fp:
        yaml.safe_dump(settings, fp, allow_unicode=True)


def field_labels(settings: Dict[str, Any]) -> FieldLabels:
    """Build :class:`FieldLabels` from the ``fields`` section, ignoring unknown keys."""

    known = {f.name for f in fields(FieldLabels)}
    values = {k: str(v) for k, v in (settings.get("fields") or {}).items() if k in known}
    return FieldLabels(**values)


def configure_logging(level: str = "INFO") -> None:
    numeric = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    # basicConfig is a no-op once a handler exists; keep later changes effective.
    logging.getLogger().setLevel(numeric)
