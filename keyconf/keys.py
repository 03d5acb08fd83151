from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar, cast

import deal

from keyconf.coercion import ELIGIBLE_KINDS, coerce, kind_name
from keyconf.errors import CastError, ConfigError, KeyNotFound, TimestampError, UnsupportedKindError
from keyconf.logging_std import get_logger, log_kv
from keyconf.result import Err, Ok, Result
from keyconf.store import Store
from keyconf.time_utc import isoformat_z, parse_timestamp

logger = get_logger(__name__)

T = TypeVar("T")


class _Accessor(ABC, Generic[T]):
    """get / get_result / sync on top of a subclass's get_err + put."""

    name: str
    default: T

    @abstractmethod
    def get_err(self, store: Store) -> T:
        ...

    @abstractmethod
    def put(self, store: Store, value: T) -> None:
        ...

    @abstractmethod
    def is_usable(self, raw: Any) -> bool:
        """True if a stored raw value would be returned by get_err()."""

    @abstractmethod
    def stored_default(self) -> Any:
        """The default in the form put() writes to the store."""

    def fresh_default(self) -> T:
        # list/dict defaults are copied so callers never share the declared one
        if isinstance(self.default, (list, dict)):
            return copy.copy(self.default)
        return self.default

    def get(self, store: Store) -> T:
        """Stored value as T, or the default when absent or not convertible."""
        try:
            return self.get_err(store)
        except (KeyNotFound, CastError):
            return self.fresh_default()

    def get_result(self, store: Store) -> Result[T, ConfigError]:
        try:
            return Ok(self.get_err(store))
        except (KeyNotFound, CastError) as exc:
            return Err(exc)

    @deal.post(lambda result: isinstance(result, bool))
    def sync(self, store: Store) -> bool:
        """
        Backfill the default when the entry is missing or unusable.

        Check and write happen under one store lock, so a concurrent put()
        is never overwritten. Returns True if the default was written.
        A second call right after is a no-op.
        """
        written = store.put_unless(self.name, self.is_usable, self.stored_default())
        if written:
            log_kv(logger, "config default backfilled", level=logging.DEBUG, key=self.name)
        return written


@dataclass(frozen=True)
class Key(_Accessor[T]):
    """
    Typed lens over one Store entry.

        PORT = Key("port", 8080)          # kind inferred: int
        RATIO = Key("ratio", 1, kind=float)

        PORT.get(store)      -> int, default on absence / bad type
        PORT.get_err(store)  -> int, raises KeyNotFound / CastError

    Declare once, reuse everywhere; a Key holds no state of its own.
    """

    name: str
    default: T
    kind: Optional[type] = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise UnsupportedKindError(f"key name must be str, got {type(self.name).__name__}")

        kind = self.kind if self.kind is not None else type(self.default)
        if kind not in ELIGIBLE_KINDS:
            raise UnsupportedKindError(
                f"key {self.name!r}: kind {kind_name(kind)} is not one of "
                + ", ".join(kind_name(k) for k in ELIGIBLE_KINDS)
            )
        try:
            default = coerce(self.default, kind, key=self.name)
        except CastError as exc:
            raise UnsupportedKindError(
                f"key {self.name!r}: default {self.default!r} is not usable as {kind_name(kind)}"
            ) from exc

        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "default", default)

    @deal.raises(KeyNotFound, CastError)
    def get_err(self, store: Store) -> T:
        raw, found = store.lookup(self.name)
        if not found:
            raise KeyNotFound(self.name)
        return coerce(raw, cast(type, self.kind), key=self.name)

    def put(self, store: Store, value: T) -> None:
        store.put(self.name, value)

    def is_usable(self, raw: Any) -> bool:
        try:
            coerce(raw, cast(type, self.kind), key=self.name)
        except CastError:
            return False
        return True

    def stored_default(self) -> Any:
        return self.fresh_default()


@dataclass(frozen=True)
class TimeKey(_Accessor[datetime]):
    """
    Key whose entry is an RFC 3339 string, exposed as a tz-aware datetime.

    get() falls back to this key's own default (not some zero time) when the
    entry is absent or does not parse.
    """

    name: str
    default: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise UnsupportedKindError(f"key name must be str, got {type(self.name).__name__}")
        if not isinstance(self.default, datetime):
            raise UnsupportedKindError(
                f"time key {self.name!r}: default must be datetime, got {type(self.default).__name__}"
            )
        if self.default.tzinfo is None:
            raise UnsupportedKindError(f"time key {self.name!r}: default must be timezone-aware")

    @property
    def text_key(self) -> Key[str]:
        return Key(self.name, "")

    @deal.raises(KeyNotFound, CastError)
    def get_err(self, store: Store) -> datetime:
        text = self.text_key.get_err(store)
        try:
            return parse_timestamp(text)
        except ValueError:
            raise TimestampError(self.name, text) from None

    @deal.raises(ValueError)
    def put(self, store: Store, value: datetime) -> None:
        """Store the RFC 3339 text. Naive datetimes are rejected (ValueError)."""
        store.put(self.name, isoformat_z(value))

    def is_usable(self, raw: Any) -> bool:
        if not self.text_key.is_usable(raw):
            return False
        try:
            parse_timestamp(coerce(raw, str, key=self.name))
        except ValueError:
            return False
        return True

    def stored_default(self) -> Any:
        return isoformat_z(self.default)


__all__ = ["Key", "TimeKey"]
