from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class Result(Generic[T, E]):
    """
    Ok/Err value for lookups that should not raise.

    Key.get_result() returns one of these instead of raising, so callers can
    tell "absent / wrong type" apart from "present and valid" without try/except:

        r = PORT.get_result(store)
        if r.is_ok():
            serve(r.value)
        else:
            log.warning("bad port: %s", r.error)
    """

    def is_ok(self) -> bool:
        raise NotImplementedError

    def is_err(self) -> bool:
        raise NotImplementedError

    def unwrap(self) -> T:
        """Value if Ok, otherwise re-raise the carried error."""
        raise NotImplementedError

    def unwrap_or(self, default: T) -> T:
        raise NotImplementedError


@dataclass(frozen=True)
class Ok(Result[T, E]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Result[T, E]):
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"unwrap on Err: {self.error!r}")

    def unwrap_or(self, default: T) -> T:
        return default
