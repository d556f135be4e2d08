"""Tests for the root logger setup."""
import logging

import pytest

from fiply import logging_utils
from fiply.logging_utils import configure_logging


@pytest.fixture()
def clean_root(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for h in root.handlers[:]:
        if h not in before:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    logging_utils._logging_configured = False


def _ours(root):
    return [h for h in root.handlers if getattr(h, "_fiply_handler", False)]


def test_file_handler_gets_debug(clean_root, tmp_path):
    log_file = tmp_path / "logs" / "fiply.log"
    configure_logging(level="ERROR", log_file=str(log_file), force=True)
    logging.getLogger("fiply.test").debug("walked %d pages", 3)
    for h in _ours(clean_root):
        h.flush()
    assert "walked 3 pages" in log_file.read_text(encoding="utf-8")


def test_env_level_override(clean_root, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    configure_logging(level="ERROR", force=True)
    (console,) = _ours(clean_root)
    assert console.level == logging.DEBUG


def test_second_call_is_noop_without_force(clean_root):
    configure_logging(force=True)
    configure_logging(level="DEBUG")
    (console,) = _ours(clean_root)
    assert console.level == logging.WARNING


def test_force_replaces_handlers(clean_root):
    configure_logging(force=True)
    configure_logging(level="INFO", force=True)
    (console,) = _ours(clean_root)
    assert console.level == logging.INFO
