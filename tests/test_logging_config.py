"""Unit tests for the logging configuration helper."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from fedoragraph import logging_config


@pytest.fixture(autouse=True)
def _reset_configured(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(logging_config, "_CONFIGURED", False)
    logger = logging.getLogger("fedoragraph")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_read_level_accepts_numbers_and_names() -> None:
    assert logging_config._read_level("2") == 2
    assert logging_config._read_level(" Debug ") == 2
    assert logging_config._read_level("silent") == 0
    assert logging_config._read_level("loud") is None


def test_map_level_thresholds() -> None:
    assert logging_config._map_level(1) == logging.INFO
    assert logging_config._map_level(2) == logging.DEBUG
    assert logging_config._map_level(5) == logging.DEBUG


def test_silent_mode_adds_no_handler(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_LEVEL", "0")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "fedora.log"))
    before = list(logging.getLogger("fedoragraph").handlers)

    logging_config.configure_logging()

    assert logging.getLogger("fedoragraph").handlers == before
    assert not (tmp_path / "fedora.log").exists()


def test_debug_mode_writes_to_the_log_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "fedora.log"
    monkeypatch.setenv("LOG_LEVEL", "2")
    monkeypatch.setenv("LOG_FILE", str(log_file))

    logging_config.configure_logging()
    logging.getLogger("fedoragraph.repository").debug("hello from the repository")
    for handler in logging.getLogger("fedoragraph").handlers:
        handler.flush()

    assert logging.getLogger("fedoragraph").level == logging.DEBUG
    assert "hello from the repository" in log_file.read_text(encoding="utf-8")


def test_configuration_happens_once(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_LEVEL", "1")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "fedora.log"))
    logger = logging.getLogger("fedoragraph")
    before = len(logger.handlers)

    logging_config.configure_logging()
    logging_config.configure_logging()

    assert len(logger.handlers) == before + 1


def test_arguments_override_the_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_LEVEL", "0")
    monkeypatch.delenv("LOG_FILE", raising=False)
    log_file = tmp_path / "explicit.log"

    handler = logging_config.configure_logging("info", log_file)

    assert isinstance(handler, logging.FileHandler)
    assert logging.getLogger("fedoragraph").level == logging.INFO
    assert log_file.exists()


def test_force_reconfigures(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("LOG_FILE", raising=False)

    assert logging_config.configure_logging() is None
    assert logging_config.configure_logging(2, tmp_path / "late.log") is None
    assert logging_config.configure_logging(2, tmp_path / "late.log", force=True) is not None
    assert logging.getLogger("fedoragraph").level == logging.DEBUG
