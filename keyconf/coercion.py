"""
Coercion engine: stored (dynamic) value -> statically requested kind.

Order of decisions for coerce(raw, kind):
  1. type(raw) is kind            -> raw unchanged
  2. bool <-> str bridge           -> "true"/"false", or a parsed bool literal
  3. explicit conversion table     -> numeric widen/narrow, Decimal, list/dict
  4. nothing applies / it failed   -> CastError(wanted, actual)

Kinds match exactly, so bool never passes for int (or the other way round).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Callable, Dict, FrozenSet, List, Tuple, Type

from keyconf.errors import CastError

ELIGIBLE_KINDS: Tuple[type, ...] = (str, bool, int, float, Decimal, list, dict)

_TRUE_LITERALS: FrozenSet[str] = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS: FrozenSet[str] = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def kind_name(kind: type) -> str:
    return kind.__name__


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def parse_bool(text: str) -> bool:
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise ValueError(f"invalid bool literal: {text!r}")


def _truncate(value: Any) -> int:
    # int() truncates toward zero for float and Decimal alike
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"cannot convert non-finite {value!r} to int")
    if isinstance(value, Decimal) and not value.is_finite():
        raise ValueError(f"cannot convert non-finite {value} to int")
    return int(value)


def _float_to_decimal(value: float) -> Decimal:
    # repr keeps the shortest round-tripping digits (0.1 -> Decimal("0.1"))
    return Decimal(repr(value))


Converter = Callable[[Any], Any]

_BRIDGE: Dict[Tuple[type, type], Converter] = {
    (bool, str): format_bool,
    (str, bool): parse_bool,
}

_TABLE: Dict[Tuple[type, type], Converter] = {
    (int, float): float,
    (int, Decimal): Decimal,
    (float, int): _truncate,
    (float, Decimal): _float_to_decimal,
    (Decimal, int): _truncate,
    (Decimal, float): float,
    (tuple, list): list,
}


def supported_conversions() -> List[Tuple[type, type]]:
    """Every (source, target) pair that is not an identity and may succeed."""
    return sorted(
        list(_BRIDGE.keys()) + list(_TABLE.keys()),
        key=lambda pair: (kind_name(pair[0]), kind_name(pair[1])),
    )


def _lookup(source: type, kind: Type[Any]) -> Converter | None:
    conv = _BRIDGE.get((source, kind)) or _TABLE.get((source, kind))
    if conv is not None:
        return conv
    # other mapping/sequence containers are accepted as their plain builtin
    if kind is dict and issubclass(source, Mapping):
        return dict
    if kind is list and issubclass(source, list):
        return list
    return None


def coerce(raw: Any, kind: Type[Any], *, key: str = "") -> Any:
    """Return `raw` as `kind` or raise CastError naming both kinds."""
    if kind not in ELIGIBLE_KINDS:
        raise TypeError(f"{kind!r} is not a coercion-eligible kind")

    source = type(raw)
    if source is kind:
        return raw

    conv = _lookup(source, kind)
    if conv is not None:
        try:
            return conv(raw)
        except (ValueError, OverflowError, ArithmeticError):
            pass

    raise CastError(key, kind_name(kind), kind_name(source))
