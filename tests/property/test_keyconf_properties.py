from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Any

from hypothesis import given, strategies as st

from keyconf.codec import CodecKind
from keyconf.errors import CastError, KeyNotFound
from keyconf.keys import Key
from keyconf.store import Store


def _safe_text(min_size: int = 0, max_size: int = 16) -> st.SearchStrategy[str]:
    # Avoid surrogate chars (category Cs): they cannot be written as UTF-8.
    return st.text(
        alphabet=st.characters(blacklist_categories=("Cs",)),
        min_size=min_size,
        max_size=max_size,
    )


KEYS = _safe_text(1, 12)

# float64 holds every int up to 2**53 exactly; JSON numbers come back as float
JSON_SCALARS = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**53), max_value=2**53),
    st.floats(allow_nan=False, allow_infinity=False),
    _safe_text(),
)
JSON_VALUES = st.recursive(
    JSON_SCALARS,
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(_safe_text(0, 8), children, max_size=4),
    ),
    max_leaves=12,
)

DEFAULTS = st.one_of(
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=False),
    _safe_text(),
    st.lists(st.integers(), max_size=3),
    st.dictionaries(_safe_text(1, 4), st.integers(), max_size=3),
)


@given(KEYS, DEFAULTS)
def test_absent_key_yields_default(name: str, default: Any) -> None:
    store = Store("unused.json")
    k = Key(name, default)
    assert k.get(store) == default
    assert isinstance(k.get_result(store).error, KeyNotFound)  # type: ignore[attr-defined]


@given(st.dictionaries(KEYS, JSON_VALUES, max_size=8))
def test_json_roundtrip(values: dict[str, Any]) -> None:
    with TemporaryDirectory() as td:
        p = Path(td) / "c.json"
        store = Store(p, CodecKind.JSON)
        for k, v in values.items():
            store.put(k, v)
        store.save()

        assert Store.load(p, CodecKind.JSON).get_copy_of_config() == values


@given(st.dictionaries(KEYS.filter(lambda k: "=" not in k and "\n" not in k and "\r" not in k and not k.startswith("#")),
                       st.floats(allow_nan=False, allow_infinity=False), max_size=8))
def test_line_roundtrip_of_floats(values: dict[str, float]) -> None:
    with TemporaryDirectory() as td:
        p = Path(td) / "c.cfg"
        store = Store(p, CodecKind.LINE)
        for k, v in values.items():
            store.put(k, v)
        store.save()

        assert Store.load(p, CodecKind.LINE).get_copy_of_config() == values


@given(KEYS, DEFAULTS, st.one_of(st.none(), JSON_VALUES))
def test_sync_is_idempotent(name: str, default: Any, existing: Any) -> None:
    store = Store("unused.json")
    if existing is not None:
        store.put(name, existing)
    k = Key(name, default)

    k.sync(store)
    after_first = store.get_copy_of_config()
    assert k.sync(store) is False
    assert store.get_copy_of_config() == after_first
    k.get_err(store)


@given(KEYS, DEFAULTS, JSON_VALUES)
def test_get_never_raises_and_agrees_with_get_err(name: str, default: Any, raw: Any) -> None:
    store = Store("unused.json")
    store.put(name, raw)
    k = Key(name, default)

    got = k.get(store)
    try:
        assert k.get_err(store) == got
    except (KeyNotFound, CastError):
        assert got == default
