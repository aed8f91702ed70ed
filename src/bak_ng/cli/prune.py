"""Prune command: Apply retention to every active entry."""

import argparse
import logging
import time

from .. import __util__
from ..__logger__ import create_logger
from ..core.operations import BackupError, prune_all
from .common import get_log_level, load_existing_config

logger = logging.getLogger(__name__)


def execute_prune(args: argparse.Namespace) -> int:
    """Execute the prune command.

    Deletes old outputs of every entry with a rename template and a keep
    count, without running any backup.

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

    dry_run = getattr(args, "dry_run", False)
    if dry_run:
        logger.info("Dry run mode - showing what would be deleted")

    logger.info(__util__.log_heading(f"Pruning old outputs at {time.ctime()}"))
    try:
        report = prune_all(config, dry_run=dry_run)
    except BackupError as e:
        logger.error("%s", e)
        return 1
    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))

    total = sum(len(r.pruned) for r in report.results)
    if dry_run:
        logger.info("Dry run: would delete %d file(s) or folder(s)", total)
    else:
        logger.info("Deleted %d file(s) or folder(s)", total)

    return 0
