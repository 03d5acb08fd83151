from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from keyconf.logging_std import configure_logging, get_logger

logger = get_logger(__name__)

ENV_PREFIX = "KEYCONF_"


class StoreSettings(BaseModel):
    """
    Library-level knobs for keyconf stores.

    Nothing here changes the on-disk formats; it only picks defaults
    (which codec when the caller passes none) and how save() writes.
    """

    default_codec: str = "json"
    json_indent: Optional[int] = None
    atomic_save: bool = False
    log_level: str = "INFO"

    @field_validator("default_codec")
    @classmethod
    def _lower_codec(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("json_indent")
    @classmethod
    def _non_negative_indent(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("json_indent must be >= 0")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.strip().upper()


_SETTINGS: Optional[StoreSettings] = None


def _read_raw_yaml(path: Path) -> Dict[str, Any]:
    """Read the `keyconf:` section of a YAML file. Any problem -> empty dict."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(
            "Settings file not found, using defaults",
            extra={"extra_data": {"settings_path": str(path)}},
        )
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error(
            "Error reading settings file, using defaults",
            extra={"extra_data": {"settings_path": str(path), "error": str(exc)}},
        )
        return {}

    if not isinstance(data, dict):
        logger.error(
            "Settings YAML root is not a mapping, using defaults",
            extra={"extra_data": {"settings_path": str(path)}},
        )
        return {}

    section = data.get("keyconf", {})
    if not isinstance(section, dict):
        logger.error(
            "Settings section 'keyconf' is not a mapping, using defaults",
            extra={"extra_data": {"settings_path": str(path)}},
        )
        return {}
    return section


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for field_name in StoreSettings.model_fields:
        raw = os.getenv(ENV_PREFIX + field_name.upper())
        if raw is None or raw.strip() == "":
            continue
        value: Any = raw.strip()
        if field_name == "json_indent" and value.lower() in ("none", "null"):
            value = None
        out[field_name] = value
    return out


def load_settings(path: Optional[Path] = None) -> StoreSettings:
    """
    Build StoreSettings from an optional YAML file plus KEYCONF_* env vars.

    - No file -> defaults.
    - Malformed file or invalid values -> defaults (logged, never raised).
    - Cached in memory unless a specific path is requested.
    """
    global _SETTINGS

    if _SETTINGS is not None and path is None:
        return _SETTINGS

    load_dotenv()

    raw: Dict[str, Any] = _read_raw_yaml(Path(path)) if path is not None else {}
    raw.update(_env_overrides())

    try:
        settings = StoreSettings(**raw)
    except ValidationError as exc:
        logger.error(
            "Invalid keyconf settings, using defaults",
            extra={"extra_data": {"settings_path": str(path) if path else None, "error": str(exc)}},
        )
        settings = StoreSettings()

    if path is None:
        _SETTINGS = settings
    return settings


def reset_settings_cache() -> None:
    global _SETTINGS
    _SETTINGS = None


def configure_logging_from(settings: StoreSettings, *, json_output: bool = False) -> None:
    """configure_logging() at settings.log_level. No-op if the app already configured logging."""
    configure_logging(level=settings.log_level, json_output=json_output)
