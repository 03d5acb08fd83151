from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

import deal

from keyconf.codec import Codec, CodecKind, coerce_kind, resolve_codec
from keyconf.errors import DecodeError, EncodeError
from keyconf.logging_std import get_logger, log_kv
from keyconf.rwlock import RWLock
from keyconf.settings import StoreSettings

logger = get_logger(__name__)

PathLike = Union[str, Path]


class Store:
    """
    In-memory config backed by one file. Safe for concurrent use by threads.

    The file is only touched by load() and save(); everything else works on
    the in-memory mapping under one readers-writer lock.

    Warning: get_copy_of_config() and lookup() hand out the stored objects
    themselves. Nested lists/dicts are shared with the caller, not cloned.
    """

    @deal.pre(lambda _: isinstance(_.path, (str, Path)), message="Store path must be str or Path")
    @deal.raises(deal.PreContractError)
    def __init__(
        self,
        path: PathLike,
        codec: Any = CodecKind.JSON,
        *,
        settings: Optional[StoreSettings] = None,
    ) -> None:
        self.path = Path(path)
        self.codec: Any = codec
        self.settings = settings if settings is not None else StoreSettings()
        self._values: Dict[str, Any] = {}
        self._lock = RWLock()
        self._resolve_codec()

    @classmethod
    @deal.pre(lambda _: isinstance(_.path, (str, Path)), message="Store.load path must be str or Path")
    @deal.post(lambda result: isinstance(result, Store), message="Store.load returns Store")
    @deal.raises(OSError, DecodeError)
    def load(
        cls,
        path: PathLike,
        codec: Any = None,
        *,
        settings: Optional[StoreSettings] = None,
    ) -> "Store":
        """
        Read `path` through the selected codec.

        - File absent -> empty store, no error (no config yet).
        - Any other I/O error -> OSError propagates.
        - Malformed content -> DecodeError.
        - codec=None -> settings.default_codec.

        Without `settings=`, built-in defaults apply; nothing is read from
        the environment. Pass load_settings() to opt in to YAML/env knobs.
        """
        settings = settings if settings is not None else StoreSettings()
        store = cls(path, codec if codec is not None else settings.default_codec, settings=settings)

        try:
            data = store.path.read_bytes()
        except FileNotFoundError:
            log_kv(logger, "config file absent, starting empty", level=logging.DEBUG,
                   path=str(store.path), codec=store.codec.value)
            return store

        try:
            store._values = store._resolve_codec().decode(data)
        except DecodeError as exc:
            raise DecodeError(exc.reason, path=store.path) from exc

        log_kv(logger, "config loaded", level=logging.DEBUG,
               path=str(store.path), codec=store.codec.value, entries=len(store._values))
        return store

    @deal.pre(lambda self, key: isinstance(key, str), message="config keys are str")
    @deal.post(lambda result: isinstance(result, tuple) and len(result) == 2)
    @deal.raises(deal.PreContractError)
    def lookup(self, key: str) -> Tuple[Any, bool]:
        with self._lock.read_locked():
            if key in self._values:
                return self._values[key], True
        return None, False

    def get(self, key: str, default: Any = None) -> Any:
        value, found = self.lookup(key)
        return value if found else default

    @deal.pre(lambda self, key, value: isinstance(key, str), message="config keys are str")
    @deal.post(lambda result: result is None)
    @deal.raises(deal.PreContractError)
    def put(self, key: str, value: Any) -> None:
        with self._lock.write_locked():
            self._values[key] = value

    @deal.pre(lambda self, key, keep, value: isinstance(key, str), message="config keys are str")
    @deal.pre(lambda self, key, keep, value: callable(keep), message="keep must be callable")
    @deal.post(lambda result: isinstance(result, bool))
    @deal.raises(deal.PreContractError)
    def put_unless(self, key: str, keep: Callable[[Any], bool], value: Any) -> bool:
        """
        Write `value` unless an entry exists and keep(entry) is true.

        Check and write share one write lock. Returns True if written.
        """
        with self._lock.write_locked():
            if key in self._values and keep(self._values[key]):
                return False
            self._values[key] = value
            return True

    @deal.post(lambda result: isinstance(result, dict), message="copy must be a dict")
    def get_copy_of_config(self) -> Dict[str, Any]:
        """Shallow copy of every entry. Taken under the write lock."""
        with self._lock.write_locked():
            return dict(self._values)

    @deal.post(lambda result: result is None)
    @deal.raises(OSError, EncodeError)
    def save(self) -> None:
        """
        Serialize the whole mapping and overwrite the file with it.

        The write lock is held for encode + write, so put()/lookup() from
        other threads wait until the file reflects one consistent snapshot.
        Encode errors leave the file untouched; a failing write may leave it
        truncated unless settings.atomic_save is on.
        """
        with self._lock.write_locked():
            codec = self._resolve_codec()
            try:
                payload = codec.encode(self._values)
            except EncodeError as exc:
                raise EncodeError(exc.reason, path=self.path) from exc

            if self.settings.atomic_save:
                self._atomic_write(payload)
            else:
                with open(self.path, "wb") as f:
                    f.write(payload)

            log_kv(logger, "config saved", level=logging.DEBUG,
                   path=str(self.path), codec=self.codec.value, bytes=len(payload))

    def __contains__(self, key: object) -> bool:
        with self._lock.read_locked():
            return key in self._values

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._values)

    def __repr__(self) -> str:
        return f"Store(path={str(self.path)!r}, codec={self.codec!r})"

    # --- internals ---

    def _resolve_codec(self) -> Codec:
        kind, recognized = coerce_kind(self.codec)
        if not recognized:
            logger.warning(
                "unknown codec %r for %s; falling back to json",
                self.codec,
                self.path,
            )
        self.codec = kind
        return resolve_codec(kind, json_indent=self.settings.json_indent)

    def _atomic_write(self, payload: bytes) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp_path), str(self.path))


def load_store(path: PathLike, codec: Any = None, *, settings: Optional[StoreSettings] = None) -> Store:
    return Store.load(path, codec, settings=settings)
