"""Tests for keyrhythm logging helpers."""

from __future__ import annotations

import logging
import sys

import pytest

from keyrhythm.utils.logging import LOG_LEVEL_ENV, LOGGER_NAME, configure_logging, get_logger


@pytest.fixture
def pkg_logger():
    """The keyrhythm logger, restored to its original handlers and level afterwards."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level = logger.handlers[:], logger.level
    yield logger
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    for h in handlers:
        logger.addHandler(h)
    logger.setLevel(level)


def test_get_logger_defaults_to_package_logger() -> None:
    assert get_logger() is logging.getLogger(LOGGER_NAME)
    assert get_logger("keyrhythm.playback").name == "keyrhythm.playback"


def test_package_installs_null_handler() -> None:
    import keyrhythm  # noqa: F401

    assert any(isinstance(h, logging.NullHandler) for h in logging.getLogger(LOGGER_NAME).handlers)


def test_configure_logging_level_and_single_handler(pkg_logger) -> None:
    configure_logging("debug", force=True)
    configure_logging("debug")

    stderr_handlers = [
        h for h in pkg_logger.handlers
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
    ]
    assert pkg_logger.level == logging.DEBUG
    assert len(stderr_handlers) == 1


def test_configure_logging_reads_env(pkg_logger, monkeypatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "WARNING")
    configure_logging(force=True)
    assert pkg_logger.level == logging.WARNING


def test_configure_logging_unknown_level_falls_back_to_info(pkg_logger) -> None:
    configure_logging("chatty", force=True)
    assert pkg_logger.level == logging.INFO
