"""List command: Show the configured backup entries."""

import argparse
import logging

from rich.table import Table

from .. import __logger__
from ..__logger__ import create_logger
from ..core.operations import entry_label
from .common import get_log_level, load_existing_config

logger = logging.getLogger(__name__)


def build_table(config) -> Table:
    """Render the entries of a configuration as a rich table."""
    table = Table(title=f"Backups to {config.destination_root}")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Source")
    table.add_column("Compression")
    table.add_column("Subfolder")
    table.add_column("Match")
    table.add_column("Rename")
    table.add_column("Keep", justify="right")
    table.add_column("Active")

    for index, entry in enumerate(config.entries, start=1):
        table.add_row(
            str(index),
            entry_label(entry),
            "\n".join(entry.sources),
            entry.compression.value,
            entry.subfolder,
            entry.match,
            entry.rename,
            str(entry.keep) if entry.keep else "all",
            "yes" if entry.active else "no",
        )
    return table


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(get_log_level(args), getattr(args, "log_file", None))

    loaded = load_existing_config(args.config)
    if loaded is None:
        return 1
    _, config = loaded

    __logger__.cons.print(build_table(config))
    return 0
