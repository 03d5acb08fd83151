"""
On-disk encodings for a Store.

Two interchangeable codecs, both mapping a flat {name: value} dict to bytes:

- JSON: one JSON object. Nested objects/arrays survive; every number is read
  back as float (JSON has a single number kind).
- LINE: `key=value` per line, `#` comments. Scalars only. Values that parse
  as a decimal float are read back as float, everything else as str.
  Lists/dicts are skipped on write.
"""

from __future__ import annotations

import json
import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import deal

from keyconf.errors import DecodeError, EncodeError
from keyconf.logging_std import get_logger

logger = get_logger(__name__)


class CodecKind(str, Enum):
    JSON = "json"
    LINE = "line"


# Decimal float literal, no whitespace, no underscores, no hex.
_FLOAT_LITERAL = re.compile(
    r"^[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)$",
    re.IGNORECASE,
)
_INF_LITERAL = re.compile(r"^[+-]?(?:inf|infinity)$", re.IGNORECASE)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite JSON constant {name!r} is not allowed")


class JsonCodec:
    kind = CodecKind.JSON

    def __init__(self, *, indent: Optional[int] = None) -> None:
        self.indent = indent

    @deal.pre(lambda self, data: isinstance(data, (bytes, bytearray)), message="JsonCodec.decode takes bytes")
    @deal.post(lambda result: isinstance(result, dict), message="JsonCodec.decode returns dict")
    @deal.raises(DecodeError)
    def decode(self, data: bytes) -> Dict[str, Any]:
        try:
            text = bytes(data).decode("utf-8")
            raw = json.loads(text, parse_int=float, parse_constant=_reject_constant)
        except (UnicodeDecodeError, ValueError) as exc:
            raise DecodeError(str(exc)) from exc

        if not isinstance(raw, dict):
            raise DecodeError(f"JSON root must be an object, got {type(raw).__name__}")
        return raw

    @deal.pre(lambda self, values: isinstance(values, dict), message="JsonCodec.encode takes dict")
    @deal.post(lambda result: isinstance(result, bytes), message="JsonCodec.encode returns bytes")
    @deal.raises(EncodeError)
    def encode(self, values: Dict[str, Any]) -> bytes:
        try:
            text = json.dumps(
                values,
                ensure_ascii=False,
                sort_keys=True,
                allow_nan=False,
                indent=self.indent,
                default=_json_default,
            )
            return (text + "\n").encode("utf-8")
        except (TypeError, ValueError) as exc:
            # ValueError covers non-finite floats and UnicodeEncodeError (lone surrogates)
            raise EncodeError(str(exc)) from exc


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            raise ValueError(f"non-finite Decimal {obj} is not JSON compliant")
        return float(obj)
    if isinstance(obj, tuple):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def parse_line_value(raw: str) -> Union[float, str]:
    """Decimal float if the text is one (and fits in a float), else the raw text."""
    if not _FLOAT_LITERAL.match(raw):
        return raw
    value = float(raw)
    if math.isinf(value) and not _INF_LITERAL.match(raw):
        # out of float64 range, e.g. 1e400
        return raw
    return value


def render_line_value(value: Any) -> Optional[str]:
    """Text for a scalar, or None when the line format cannot carry it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return repr(value) if isinstance(value, float) else str(value)
    if isinstance(value, str):
        return value
    return None


def iter_line_entries(text: str) -> Iterator[Tuple[str, str]]:
    # only \n separates lines; a trailing \r is dropped, nothing else is trimmed
    for line in text.split("\n"):
        if line.endswith("\r"):
            line = line[:-1]
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        yield key, value


class LineCodec:
    kind = CodecKind.LINE

    @deal.pre(lambda self, data: isinstance(data, (bytes, bytearray)), message="LineCodec.decode takes bytes")
    @deal.post(lambda result: isinstance(result, dict), message="LineCodec.decode returns dict")
    @deal.raises(DecodeError)
    def decode(self, data: bytes) -> Dict[str, Any]:
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(str(exc)) from exc

        out: Dict[str, Any] = {}
        for key, value in iter_line_entries(text):
            out[key] = parse_line_value(value)
        return out

    @deal.pre(lambda self, values: isinstance(values, dict), message="LineCodec.encode takes dict")
    @deal.post(lambda result: isinstance(result, bytes), message="LineCodec.encode returns bytes")
    @deal.raises(EncodeError)
    def encode(self, values: Dict[str, Any]) -> bytes:
        lines = []
        for key in sorted(values.keys()):
            rendered = render_line_value(values[key])
            if rendered is None:
                logger.debug("line codec skips %r (%s)", key, type(values[key]).__name__)
                continue
            if not _reloads_as_written(key, rendered):
                logger.debug("line codec entry %r will not reload as written", key)
            lines.append(f"{key}={rendered}\n")
        try:
            return "".join(lines).encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodeError(str(exc)) from exc


def _reloads_as_written(key: str, rendered: str) -> bool:
    # the format has no escaping: "=" ends a key, "\n" ends an entry
    if "=" in key or "\n" in key or key.startswith("#"):
        return False
    return "\n" not in rendered and not rendered.endswith("\r")


Codec = Union[JsonCodec, LineCodec]


def coerce_kind(kind: Any) -> Tuple[CodecKind, bool]:
    """(resolved kind, recognized?). Anything unrecognized resolves to JSON."""
    if isinstance(kind, CodecKind):
        return kind, True
    if isinstance(kind, str):
        try:
            return CodecKind(kind.strip().lower()), True
        except ValueError:
            pass
    return CodecKind.JSON, False


def resolve_codec(kind: Any, *, json_indent: Optional[int] = None) -> Codec:
    resolved, _ = coerce_kind(kind)
    if resolved is CodecKind.LINE:
        return LineCodec()
    return JsonCodec(indent=json_indent)
