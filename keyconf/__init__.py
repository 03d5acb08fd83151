# keyconf/__init__.py
"""
keyconf: file-backed in-memory config with typed accessors.

Rule: importing the package configures nothing (no handlers, no file I/O).
"""

from __future__ import annotations

from .codec import CodecKind, JsonCodec, LineCodec, resolve_codec
from .coercion import coerce, supported_conversions
from .errors import (
    CastError,
    ConfigError,
    DecodeError,
    EncodeError,
    KeyNotFound,
    TimestampError,
    UnsupportedKindError,
)
from .keys import Key, TimeKey
from .result import Err, Ok, Result
from .settings import StoreSettings, configure_logging_from, load_settings
from .store import Store, load_store

__all__ = [
    "CodecKind",
    "JsonCodec",
    "LineCodec",
    "resolve_codec",
    "coerce",
    "supported_conversions",
    "CastError",
    "ConfigError",
    "DecodeError",
    "EncodeError",
    "KeyNotFound",
    "TimestampError",
    "UnsupportedKindError",
    "Key",
    "TimeKey",
    "Err",
    "Ok",
    "Result",
    "StoreSettings",
    "load_settings",
    "configure_logging_from",
    "Store",
    "load_store",
]
