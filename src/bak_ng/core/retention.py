"""Retention pruning of previous backup outputs.

Outputs are not tracked anywhere, so earlier outputs of an entry are found
by rebuilding a regular expression from its rename template: time tokens
become digit runs of the width they expand to, every other token becomes
its literal value.
"""

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Sequence

from .. import display_name
from ..config.schema import BackupEntry
from .destination import (
    SEPARATORS,
    TEMPLATE_TOKEN,
    subfolder_name,
    target_directory,
)

logger = logging.getLogger(__name__)

TIME_TOKEN_PATTERNS = {
    "s": r"\d{14}",
    "d": r"\d{8}",
    "t": r"\d{6}",
}


def build_retention_pattern(entry: BackupEntry, source_basename: str) -> re.Pattern:
    """Build the regex recognizing outputs of ``entry`` for one source."""
    literals = {
        "o": source_basename,
        "n": entry.name,
        "b": subfolder_name(entry.subfolder),
    }

    parts = []
    # Leading separators are dropped from expanded names, so skip them here too
    leading = True

    def literal(text: str) -> None:
        nonlocal leading
        if leading:
            text = text.lstrip(SEPARATORS)
            leading = not text
        parts.append(re.escape(text))

    position = 0
    for match in TEMPLATE_TOKEN.finditer(entry.rename):
        literal(entry.rename[position : match.start()])
        token = match.group(1)
        if token in TIME_TOKEN_PATTERNS:
            parts.append(TIME_TOKEN_PATTERNS[token])
            leading = False
        else:
            literal(literals[token])
        position = match.end()
    literal(entry.rename[position:])

    if entry.compression.extension:
        parts.append(re.escape(f".{entry.compression.extension}"))

    return re.compile(f"^{''.join(parts)}$")


def creation_time(path: Path) -> float:
    """Creation time of ``path``, or its inode change time where unknown."""
    stat = path.stat()
    return getattr(stat, "st_birthtime", None) or stat.st_ctime


def find_outputs(directory: Path, pattern: re.Pattern) -> list[Path]:
    """List entries of ``directory`` whose names match ``pattern``."""
    return [directory / name for name in os.listdir(directory) if pattern.match(name)]


def select_expired(outputs: Sequence[Path], keep: int) -> list[Path]:
    """Return the outputs beyond the ``keep`` newest ones."""
    if len(outputs) <= keep:
        return []
    ordered = sorted(outputs, key=lambda p: (creation_time(p), p.name), reverse=True)
    return ordered[keep:]


def remove_output(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def prune(
    entry: BackupEntry,
    sources: Sequence[Path],
    destination_root: Path | str,
    log: logging.Logger | None = None,
    dry_run: bool = False,
    pending: Sequence[Path] = (),
) -> list[Path]:
    """Delete old outputs of ``entry`` beyond its ``keep`` count.

    Args:
        entry: Entry whose outputs are pruned
        sources: Sources the outputs were produced from
        destination_root: Root of the backup tree
        log: Logger receiving progress, defaults to the module logger
        dry_run: Only report what would be deleted
        pending: Outputs about to be written, counted as the newest ones

    Returns:
        Paths deleted (or that would be deleted in a dry run)
    """
    log = log or logger

    if not entry.rename or entry.keep == 0:
        return []

    directory = target_directory(destination_root, entry.subfolder)
    if not directory.is_dir():
        log.debug("Nothing to prune, %s doesn't exist", directory)
        return []

    removed: list[Path] = []
    for source in sources:
        pattern = build_retention_pattern(entry, display_name(source))
        try:
            outputs = find_outputs(directory, pattern)
            incoming = [
                p
                for p in pending
                if p.parent == directory
                and pattern.match(p.name)
                and p not in outputs
            ]
            log.debug(
                "%d output(s) of %s match %s (keep %d, %d pending)",
                len(outputs),
                source,
                pattern.pattern,
                entry.keep,
                len(incoming),
            )
            expired = select_expired(outputs, max(entry.keep - len(incoming), 0))
        except OSError as e:
            log.error("Cannot read outputs of %s in %s: %s", source, directory, e)
            continue

        for path in expired:
            if dry_run:
                log.info("Would delete old file or folder: %s", path)
                removed.append(path)
                continue
            try:
                remove_output(path)
            except OSError as e:
                log.error("Failed to delete %s: %s", path, e)
                continue
            log.warning("Deleted old file or folder: %s", path)
            removed.append(path)

    return removed
