from __future__ import annotations

import json
import logging

import pytest

import keyconf.logging_std as ls


def test_import_has_no_side_effect_handlers() -> None:
    root = logging.getLogger()
    # We don't assert it is empty (pytest may attach handlers), we assert we didn't ADD one.
    before = len(root.handlers)
    import importlib

    importlib.reload(ls)
    after = len(root.handlers)
    assert after == before


def test_configure_logging_idempotent() -> None:
    root = logging.getLogger()
    before = len(root.handlers)
    ls.configure_logging()
    after = len(root.handlers)
    # either unchanged (pytest already configured) or adds exactly 1 handler
    assert after == before or after == before + 1


def test_structured_formatter_merges_extra_data() -> None:
    record = logging.LogRecord("keyconf.store", logging.INFO, __file__, 1, "config %s", ("saved",), None)
    record.extra_data = {"path": "/tmp/c.json", "bytes": 12}

    out = json.loads(ls.StructuredFormatter().format(record))
    assert out["message"] == "config saved"
    assert out["level"] == "INFO"
    assert out["logger"] == "keyconf.store"
    assert out["path"] == "/tmp/c.json"
    assert out["bytes"] == 12


def test_log_kv_sorts_pairs(caplog: pytest.LogCaptureFixture) -> None:
    logger = ls.get_logger("keyconf.test")
    with caplog.at_level(logging.DEBUG, logger="keyconf.test"):
        ls.log_kv(logger, "config saved", level=logging.DEBUG, path="p", codec="json")
        ls.log_kv(logger, "bare")

    assert caplog.records[0].getMessage() == "config saved | codec='json' path='p'"
    assert caplog.records[0].levelno == logging.DEBUG
    assert caplog.records[0].extra_data == {"path": "p", "codec": "json"}
    assert caplog.records[1].getMessage() == "bare"


def test_log_kv_skips_disabled_levels(caplog: pytest.LogCaptureFixture) -> None:
    logger = ls.get_logger("keyconf.quiet")
    with caplog.at_level(logging.WARNING, logger="keyconf.quiet"):
        ls.log_kv(logger, "hidden", level=logging.DEBUG, a=1)
    assert caplog.records == []
