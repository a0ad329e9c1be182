"""Logging setup for operator processes."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """
    Route all log records through a rich handler on stderr.

    Library modules only create loggers; processes call this once at startup.

    Args:
        level: Root log level name (e.g., "DEBUG", "INFO")
        console: Console to write to (default: a stderr console)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
