"""Destination path formatting for backup outputs."""

import logging
import os
import re
from datetime import datetime
from pathlib import Path

from ..config.schema import BackupEntry, Compression

logger = logging.getLogger(__name__)

TEMPLATE_TOKEN = re.compile(r"/([sdtonb])")
SEPARATORS = "/\\"


class DestinationError(ValueError):
    """An output path would fall outside its target directory."""

    pass


def target_directory(destination_root: Path | str, subfolder: str) -> Path:
    """Join the destination root and an entry subfolder into one path.

    A leading separator on the subfolder does not escape the root.
    """
    relative = subfolder.lstrip("/\\")
    return Path(os.path.normpath(os.path.join(destination_root, relative)))


def subfolder_name(subfolder: str) -> str:
    """Last component of an entry subfolder, empty when there is none."""
    stripped = subfolder.strip("/\\")
    if not stripped:
        return ""
    return os.path.basename(os.path.normpath(stripped))


def template_values(
    entry: BackupEntry, source_basename: str, now: datetime | None = None
) -> dict[str, str]:
    """Values substituted for each rename template token."""
    now = now or datetime.now()
    return {
        "s": now.strftime("%Y%m%d%H%M%S"),
        "d": now.strftime("%Y%m%d"),
        "t": now.strftime("%H%M%S"),
        "o": source_basename,
        "n": entry.name,
        "b": subfolder_name(entry.subfolder),
    }


def format_basename(
    entry: BackupEntry, source_basename: str, now: datetime | None = None
) -> str:
    """Expand the entry's rename template, or keep the original basename."""
    if not entry.rename:
        return source_basename

    values = template_values(entry, source_basename, now)
    expanded = TEMPLATE_TOKEN.sub(lambda m: values[m.group(1)], entry.rename)
    # Outputs always live below the target directory
    return expanded.lstrip(SEPARATORS)


def with_extension(basename: str, compression: Compression) -> str:
    if compression.extension:
        return f"{basename}.{compression.extension}"
    return basename


def format_destination(
    destination_root: Path | str,
    source_basename: str,
    entry: BackupEntry,
    now: datetime | None = None,
    create: bool = True,
) -> Path:
    """Compute the output path for one source of an entry.

    Args:
        destination_root: Root of the backup tree
        source_basename: Name of the source file or folder
        entry: Entry providing subfolder, rename template and compression
        now: Timestamp for template tokens, captured fresh when omitted
        create: Create the target directory and its parents when missing

    Returns:
        Absolute output path including any archive extension

    Raises:
        DestinationError: If the expanded name is empty or leaves the target
            directory
    """
    target_dir = target_directory(destination_root, entry.subfolder)
    basename = with_extension(format_basename(entry, source_basename, now), entry.compression)
    if not basename:
        raise DestinationError(f"Rename template of {source_basename} gives an empty name")

    output = Path(os.path.normpath(os.path.join(target_dir, basename)))
    if output == target_dir or target_dir not in output.parents:
        raise DestinationError(f"Output {output} is outside {target_dir}")

    if create and not output.parent.exists():
        logger.debug("Creating directory %s", output.parent)
        output.parent.mkdir(parents=True, exist_ok=True)

    return output
