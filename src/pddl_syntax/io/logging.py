"""Define utility functions to simplify logging to the CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger(__name__)
console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Route log records from the `pddl_syntax` package to a rich console handler.

    Library modules only create loggers; scripts call this function once at startup.

    :param verbose: Whether to show debug records (defaults to False, showing warnings and up)
    """
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=console, show_path=verbose, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("pddl_syntax")
    package_logger.handlers = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False

    logger.debug("Configured logging at level %s.", logging.getLevelName(level))
