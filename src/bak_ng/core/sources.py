"""Source resolution: expand an entry's source specification into paths.

Each source string may contain ``%VAR%`` placeholders. Existing directories
are filtered through the entry's ``match`` wildcard when one is set.
"""

import logging
import os
import re
from pathlib import Path

from .. import __util__
from ..config.schema import BackupEntry

logger = logging.getLogger(__name__)

WILDCARD_OPERATORS = {"*": ".*", "?": ".", ";": "|"}


class NoSourceMatchedError(Exception):
    """No file or folder matched the entry's source specification."""

    pass


def compile_wildcard(pattern: str) -> re.Pattern:
    """Compile a wildcard pattern into a full-name, case-insensitive regex.

    ``*`` matches any run of characters, ``?`` exactly one character and
    ``;`` separates alternatives. Everything else is matched literally.
    """
    parts = []
    for char in pattern:
        if char in WILDCARD_OPERATORS:
            parts.append(WILDCARD_OPERATORS[char])
        else:
            parts.append(re.escape(char))
    return re.compile(f"^(?:{''.join(parts)})$", re.IGNORECASE)


def match_children(directory: Path, pattern: str) -> list[Path]:
    """Return the immediate children of ``directory`` whose names match."""
    matcher = compile_wildcard(pattern)
    return [
        directory / name
        for name in sorted(os.listdir(directory))
        if matcher.fullmatch(name)
    ]


def resolve_sources(entry: BackupEntry, log: logging.Logger | None = None) -> list[Path]:
    """Resolve an entry's sources into a list of existing absolute paths.

    Args:
        entry: Backup entry to resolve
        log: Logger receiving warnings, defaults to the module logger

    Returns:
        Resolved paths in configuration order

    Raises:
        NoSourceMatchedError: If nothing exists or nothing matched
    """
    log = log or logger
    resolved: list[Path] = []

    for source in entry.sources:
        path = __util__.resolve_path(source)

        if not __util__.exists(path):
            log.warning("File or folder %s doesn't exist", path)
            continue

        if __util__.is_dir(path) and entry.match:
            matched = match_children(path, entry.match)
            log.debug("%d item(s) in %s match '%s'", len(matched), path, entry.match)
            resolved.extend(matched)
        else:
            resolved.append(path)

    if not resolved:
        raise NoSourceMatchedError("No file or folder match")

    return resolved
