from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict


_DEFAULT_FMT = "%(asctime)s %(levelname)s %(name)s | %(message)s"


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; `extra={"extra_data": {...}}` is merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "message": record.getMessage(),
        }
        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            entry.update(extra_data)
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    *,
    level: str = "INFO",
    fmt: str = _DEFAULT_FMT,
    json_output: bool = False,
) -> None:
    """
    Idempotent-ish logging config for applications embedding keyconf.
    Importing this module does nothing. You must call configure_logging().
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured by app/test runner; keep hands off.
        return

    formatter: logging.Formatter = StructuredFormatter() if json_output else logging.Formatter(fmt)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), handlers=[handler])


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_kv(logger: logging.Logger, msg: str, *, level: int = logging.INFO, **kv: Any) -> None:
    if not logger.isEnabledFor(level):
        return
    if not kv:
        logger.log(level, msg)
        return
    extra = " ".join([f"{k}={kv[k]!r}" for k in sorted(kv.keys())])
    logger.log(level, "%s | %s", msg, extra, extra={"extra_data": dict(kv)})
