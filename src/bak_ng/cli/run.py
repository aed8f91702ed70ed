"""Run command: Execute all configured backup entries."""

import argparse
import logging
import time

from .. import __util__
from ..__logger__ import create_logger
from ..core.operations import BackupError, RunReport, run_backup
from .common import get_log_level, load_existing_config

logger = logging.getLogger(__name__)


def log_summary(report: RunReport) -> None:
    """Log the per-status counts of a finished run."""
    logger.info(
        "%d processed, %d skipped, %d failed",
        report.processed,
        report.skipped,
        report.failed,
    )
    for result in report.results:
        if result.error:
            logger.warning("  %d. %s: %s", result.index, result.label, result.error)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Per-entry failures are reported but do not change the exit code.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, 1 if the run could not start)
    """
    create_logger(get_log_level(args), getattr(args, "log_file", None))

    loaded = load_existing_config(args.config)
    if loaded is None:
        return 1
    config_path, config = loaded
    logger.info("Loaded configuration from: %s", config_path)

    dry_run = getattr(args, "dry_run", False)
    if dry_run:
        logger.info("Dry run mode - nothing will be written or deleted")

    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))
    try:
        report = run_backup(
            config,
            dry_run=dry_run,
            archiver=getattr(args, "archiver", None),
        )
    except BackupError as e:
        logger.error("%s", e)
        return 1
    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))

    log_summary(report)
    return 0
