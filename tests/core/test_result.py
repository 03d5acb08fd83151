from __future__ import annotations

import pytest

from keyconf.errors import KeyNotFound
from keyconf.result import Err, Ok, Result


def test_ok_and_err_flags() -> None:
    r1: Result[int, str] = Ok(10)
    r2: Result[int, str] = Err("boom")

    assert r1.is_ok()
    assert not r1.is_err()
    assert not r2.is_ok()
    assert r2.is_err()


def test_unwrap_or() -> None:
    assert Ok(2).unwrap_or(0) == 2
    assert Err("fail").unwrap_or(999) == 999


def test_ok_unwrap_returns_value() -> None:
    assert Ok(3).unwrap() == 3


def test_unwrap_reraises_carried_exception() -> None:
    with pytest.raises(KeyNotFound):
        Err(KeyNotFound("port")).unwrap()


def test_unwrap_non_exception_error() -> None:
    with pytest.raises(ValueError):
        Err("plain").unwrap()
