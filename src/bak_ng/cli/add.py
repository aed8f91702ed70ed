"""Add command: Append a file or folder to a backup configuration."""

import argparse
import logging
import os
from typing import Callable

from .. import __util__
from ..__logger__ import create_logger
from ..config import BackupConfig, BackupEntry, ConfigError, save_config
from ..config.loader import parse_compression
from .common import get_log_level, load_existing_config

logger = logging.getLogger(__name__)

COMPRESSION_CHOICES = ["none", "solid", "zip"]


def is_in_config(config: BackupConfig, path: str) -> bool:
    """Check whether ``path`` is already a source of any entry.

    Sources are compared both as written and as resolved paths.
    """
    written = os.path.normpath(path)
    resolved = __util__.resolve_path(path)
    for entry in config.entries:
        for source in entry.sources:
            if os.path.normpath(source) == written:
                return True
            if __util__.resolve_path(source) == resolved:
                return True
    return False


def _ask(ask: Callable[[str], str], prompt: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    return ask(f"{prompt}{suffix}: ").strip() or default


def _ask_keep(ask: Callable[[str], str]) -> int:
    while True:
        answer = _ask(ask, "Keep how many old outputs (0 = all)", "0")
        if answer.isdigit():
            return int(answer)
        print("Please enter a whole number")


def build_entry(
    path: str,
    args: argparse.Namespace,
    ask: Callable[[str], str] | None = None,
) -> BackupEntry:
    """Build a new entry from command line options and answers to prompts.

    Options given on the command line are not asked for. With ``--no-input``
    nothing is asked and unset options keep their defaults.

    Raises:
        EOFError, KeyboardInterrupt: If the user aborts a prompt
        ConfigError: If an answer is not a valid value
    """
    ask = ask or input
    interactive = not getattr(args, "no_input", False)
    values = {}

    for field, prompt in (
        ("name", "Name"),
        ("description", "Description"),
        ("compression", f"Compression type ({'/'.join(COMPRESSION_CHOICES)})"),
        ("subfolder", "Subfolder"),
        ("match", "Match wildcard"),
        ("rename", "Rename template (/s /d /t /o /n /b)"),
    ):
        value = getattr(args, field, None)
        if value is None and interactive:
            value = _ask(ask, prompt, "none" if field == "compression" else "")
        values[field] = value or ""

    keep = getattr(args, "keep", None)
    if keep is None:
        keep = _ask_keep(ask) if interactive and values["rename"] else 0
    if keep < 0:
        raise ConfigError(f"keep must not be negative: {keep}")

    return BackupEntry(
        source=os.path.normpath(path),
        name=values["name"],
        description=values["description"],
        compression=parse_compression(values["compression"]),
        subfolder=values["subfolder"],
        match=values["match"],
        rename=values["rename"],
        keep=keep,
        active=not getattr(args, "inactive", False),
    )


def execute_add(args: argparse.Namespace) -> int:
    """Execute the add command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(get_log_level(args), getattr(args, "log_file", None))

    loaded = load_existing_config(args.config)
    if loaded is None:
        return 1
    config_path, config = loaded

    source_path = __util__.resolve_path(args.path)
    if not __util__.exists(source_path):
        logger.error("The file or folder doesn't exist: %s", source_path)
        return 1

    if is_in_config(config, args.path):
        logger.error(
            "The file or folder already exists in the configuration: %s", source_path
        )
        return 1

    try:
        entry = build_entry(args.path, args)
    except (EOFError, KeyboardInterrupt):
        logger.error("Aborted")
        return 1
    except ConfigError as e:
        logger.error("Invalid entry: %s", e)
        return 1

    config.entries.append(entry)
    if not save_config(config_path, config):
        logger.error("Error saving configuration file: %s", config_path)
        return 1

    logger.info("File or folder added successfully: %s", source_path)
    return 0
