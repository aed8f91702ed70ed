# pyright: standard

"""bak-ng: bak_ng/__logger__.py
A common logger for displaying backup progress on a rich console.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Initialize basic console and handler
cons = Console()
rich_handler = RichHandler(console=cons, show_path=False)

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def create_logger(level: str | int = "INFO", log_file: str | None = None) -> None:
    """Helper function to setup logging for a command run.

    Args:
        level: Log level name or number for both console and file output
        log_file: Optional path of a plain text log file
    """
    # pylint: disable=global-statement
    global rich_handler

    rich_handler = RichHandler(console=cons, show_path=False, markup=False)

    handlers: list[logging.Handler] = [rich_handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=handlers,
        force=True,
    )
