"""Logging configuration for the command-line client."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(debug: bool = False, console: Console | None = None) -> None:
    """Route stdlib logging through Rich on stderr.

    Args:
        debug: Show DEBUG records (raw stream events, parsed frames)
        console: Console to log to (default: a new stderr console)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=debug,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # Keep HTTP client chatter out of normal runs
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.INFO if debug else logging.WARNING)
