"""Create command: Write a new, empty backup configuration."""

import argparse
import logging
import os

from .. import __util__
from ..__logger__ import create_logger
from ..config import BackupConfig, save_config
from .common import get_log_level

logger = logging.getLogger(__name__)


def ask_destination(default: str) -> str:
    """Ask where backups should be written."""
    answer = input(f"Directory where the backup will be made? [{default}]: ").strip()
    return answer or default


def execute_create(args: argparse.Namespace) -> int:
    """Execute the create command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(get_log_level(args), getattr(args, "log_file", None))

    config_path = __util__.resolve_path(args.config)
    if __util__.exists(config_path):
        logger.error("The configuration file already exists: %s", config_path)
        return 1

    destination = getattr(args, "destination", None)
    if destination is None:
        try:
            destination = ask_destination(str(config_path.parent))
        except (EOFError, KeyboardInterrupt):
            logger.error("Aborted")
            return 1

    destination_path = __util__.resolve_path(destination)
    if not __util__.is_dir(destination_path):
        logger.error("The backup directory doesn't exist: %s", destination_path)
        return 1

    config = BackupConfig(destination_root=os.path.normpath(destination))
    if not save_config(config_path, config):
        logger.error("Error saving configuration file: %s", config_path)
        return 1

    logger.info("Backup configuration created successfully: %s", config_path)
    return 0
