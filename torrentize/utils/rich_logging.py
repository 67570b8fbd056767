"""Rich logging integration for torrentize.

Console log output goes to stderr through a RichHandler so that it never
interleaves with anything written to stdout.
"""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler


def create_console(stderr: bool = True) -> Console:
    """Create the Rich console used for log records and progress lines."""
    return Console(
        file=sys.stderr if stderr else sys.stdout,
        stderr=stderr,
        markup=True,
        highlight=False,
        legacy_windows=False,  # Use modern Windows terminal handling
    )


def create_rich_handler(
    console: Console | None = None,
    level: int = logging.INFO,
    show_path: bool = False,
    rich_tracebacks: bool = True,
) -> logging.Handler:
    """Create a RichHandler for console logging.

    Args:
        console: Optional Rich Console instance (defaults to stderr)
        level: Log level
        show_path: Whether to show file paths in log output
        rich_tracebacks: Whether to use rich tracebacks

    Returns:
        Configured RichHandler instance

    """
    if console is None:
        console = create_console()

    # file names may contain square brackets, so messages are not markup
    return RichHandler(
        console=console,
        level=level,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        markup=False,
    )
