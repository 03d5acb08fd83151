from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConfigError(Exception):
    """Base for every error raised by keyconf itself (I/O errors stay OSError)."""


class DecodeError(ConfigError):
    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        self.reason = message
        self.path = Path(path) if path is not None else None
        where = f" ({self.path})" if self.path is not None else ""
        super().__init__(f"config decode failed{where}: {message}")


class EncodeError(ConfigError):
    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        self.reason = message
        self.path = Path(path) if path is not None else None
        where = f" ({self.path})" if self.path is not None else ""
        super().__init__(f"config encode failed{where}: {message}")


class KeyNotFound(ConfigError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"config get: key not found: {key!r}")


class CastError(ConfigError):
    """Stored value exists but cannot be turned into the wanted kind."""

    def __init__(self, key: str, wanted: str, actual: str) -> None:
        self.key = key
        self.wanted = wanted
        self.actual = actual
        super().__init__(
            f"config get {key!r}: failed to cast value (wanted type: {wanted} but got type: {actual})"
        )


class TimestampError(CastError):
    def __init__(self, key: str, text: str) -> None:
        self.text = text
        super().__init__(key, "datetime", "str")
        self.args = (f"config get {key!r}: {text!r} is not an RFC 3339 timestamp",)


class UnsupportedKindError(ConfigError, TypeError):
    pass
