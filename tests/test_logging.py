"""Tests for quickwiki.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from quickwiki.logging import (
    CONSOLE_FORMAT,
    VERBOSE_CONSOLE_FORMAT,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _reset():
    yield
    reset_logging()


def test_get_logger_nests_under_package() -> None:
    assert get_logger("compiler").name == "quickwiki.compiler"
    assert get_logger().name == "quickwiki"


def test_configure_logging_replaces_previous_handlers() -> None:
    configure_logging()
    logger = configure_logging()

    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    assert logger.propagate is False
    assert logger.handlers[0].formatter._fmt == CONSOLE_FORMAT


def test_verbose_console_names_the_stage() -> None:
    logger = configure_logging(verbose=True)

    assert logger.level == logging.DEBUG
    assert logger.handlers[0].formatter._fmt == VERBOSE_CONSOLE_FORMAT


def test_log_file_parent_is_created(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "nested" / "run.log"

    configure_logging(log_file=log_file)
    get_logger("planner").info("Planned %d pages", 4)
    reset_logging()

    assert "INFO quickwiki.planner: Planned 4 pages" in log_file.read_text(encoding="utf-8")


def test_reset_logging_detaches_handlers() -> None:
    configure_logging()

    logger = reset_logging()

    assert logger.handlers == []
    assert logger.propagate is True
