"""Tests for clipsmith.logging module."""

from __future__ import annotations

import logging

import pytest

from clipsmith.logging import configure_logging, logger


@pytest.mark.parametrize(
    ("verbose", "quiet", "level"),
    [
        (False, False, logging.WARNING),
        (True, False, logging.DEBUG),
        (False, True, logging.ERROR),
        (True, True, logging.DEBUG),
    ],
)
def test_levels(verbose: bool, quiet: bool, level: int) -> None:
    configure_logging(verbose=verbose, quiet=quiet)
    assert logger.level == level


def test_module_loggers_are_children() -> None:
    assert logging.getLogger("clipsmith.staging.scheduler").parent.name in (
        "clipsmith",
        "clipsmith.staging",
    )
