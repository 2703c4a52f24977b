"""Tests for vidshelf.utils.debug."""

import importlib
import logging

import pytest

from vidshelf.utils import debug as debug_mod


@pytest.fixture()
def fresh_debug(monkeypatch: pytest.MonkeyPatch):
    """Reload the module so DEBUG_ON and the cached logger start clean."""

    def _load(flag: str | None):
        if flag is None:
            monkeypatch.delenv("VIDSHELF_DEBUG", raising=False)
        else:
            monkeypatch.setenv("VIDSHELF_DEBUG", flag)
        return importlib.reload(debug_mod)

    yield _load
    monkeypatch.undo()
    importlib.reload(debug_mod)
    logging.getLogger("vidshelf").setLevel(logging.NOTSET)


def test_default_level_is_warning(fresh_debug) -> None:
    mod = fresh_debug(None)
    assert mod.setup_logger().level == logging.WARNING


def test_debug_env_enables_debug(fresh_debug, caplog: pytest.LogCaptureFixture) -> None:
    mod = fresh_debug("1")
    with caplog.at_level(logging.DEBUG, logger="vidshelf"):
        mod.debug("parsed something")
    assert "parsed something" in caplog.text


def test_debug_is_silent_by_default(fresh_debug, caplog: pytest.LogCaptureFixture) -> None:
    mod = fresh_debug(None)
    with caplog.at_level(logging.DEBUG, logger="vidshelf"):
        mod.debug("hidden")
    assert "hidden" not in caplog.text


def test_verbose_raises_level(fresh_debug) -> None:
    mod = fresh_debug(None)
    mod.setup_logger()
    assert mod.setup_logger(verbose=True).level == logging.DEBUG


def test_warn_is_logged_by_default(fresh_debug, caplog: pytest.LogCaptureFixture) -> None:
    mod = fresh_debug(None)
    with caplog.at_level(logging.WARNING, logger="vidshelf"):
        mod.warn("could not remove folder")
    assert "could not remove folder" in caplog.text
