"""Unit tests for the logging configuration used by scripts."""

import logging
from collections.abc import Iterator

import pytest
from rich.logging import RichHandler

from pddl_syntax.io import configure_logging


@pytest.fixture
def package_logger() -> Iterator[logging.Logger]:
    """Yield the package's logger, restoring its configuration after the test."""
    logger = logging.getLogger("pddl_syntax")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers, logger.level, logger.propagate = handlers, level, propagate


@pytest.mark.parametrize(("verbose", "level"), [(False, logging.WARNING), (True, logging.DEBUG)])
def test_configure_logging(package_logger: logging.Logger, verbose: bool, level: int) -> None:
    """Verify that configuring logging installs a single rich handler at the expected level."""
    # Act - Configure logging twice, as a script might
    configure_logging(verbose)
    configure_logging(verbose)

    # Assert - Verify the handler and level of the package's logger
    assert len(package_logger.handlers) == 1
    assert isinstance(package_logger.handlers[0], RichHandler)
    assert package_logger.level == level
    assert not package_logger.propagate
