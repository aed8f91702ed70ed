"""Archive strategies: copy, solid (7z) archive and zip archive.

Every strategy takes the resolved sources of one entry and writes them under
the destination root. ``get_strategy`` is the single dispatch point from an
entry's ``Compression`` value to its implementation.
"""

import logging
import os
import shutil
import subprocess
import zipfile
from pathlib import Path
from typing import Sequence

from .. import display_name
from ..config.schema import BackupEntry, Compression
from .destination import DestinationError, format_destination

logger = logging.getLogger(__name__)

SOLID_ARCHIVERS = ("7z", "7za", "7zz")


class ArchiveError(Exception):
    """Creating an archive failed."""

    pass


def log_transfer(log: logging.Logger, sources: Sequence[Path], target: Path) -> None:
    """Log the sources and the output of a finished backup."""
    log.info("From: %s", "\n      ".join(str(s) for s in sources))
    log.info("To: %s", target)


def archive_target(
    sources: Sequence[Path], destination_root: Path | str, entry: BackupEntry
) -> Path:
    """Output path of an archive, named after the first source."""
    try:
        return format_destination(destination_root, display_name(sources[0]), entry)
    except (OSError, DestinationError) as e:
        raise ArchiveError(f"Cannot prepare output for {sources[0]}: {e}")


class ArchiveStrategy:
    """Base class for the per-compression backup backends."""

    compression: Compression
    # Whether all sources of an entry go into a single output
    batched = True

    def apply(
        self,
        sources: Sequence[Path],
        destination_root: Path | str,
        entry: BackupEntry,
        log: logging.Logger | None = None,
    ) -> list[Path]:
        """Back up ``sources`` and return the outputs written."""
        raise NotImplementedError

    def retention_sources(self, sources: Sequence[Path]) -> list[Path]:
        """Sources whose outputs retention is evaluated for."""
        if self.batched:
            return list(sources[:1])
        return list(sources)


class CopyStrategy(ArchiveStrategy):
    """Copy every source to its own destination, overwriting."""

    compression = Compression.NONE
    batched = False

    def apply(self, sources, destination_root, entry, log=None):
        log = log or logger
        outputs = []

        for source in sources:
            try:
                target = format_destination(
                    destination_root, display_name(source), entry
                )
                copy_path(source, target)
            except (OSError, DestinationError) as e:
                log.error("Error copying %s: %s", source, e)
                continue
            log_transfer(log, [source], target)
            outputs.append(target)

        return outputs


def copy_path(source: Path, target: Path) -> None:
    """Recursively copy a file or folder, replacing existing content."""
    if source.is_dir():
        if target.exists() and not target.is_dir():
            target.unlink()
        shutil.copytree(source, target, dirs_exist_ok=True)
    else:
        if target.is_dir():
            shutil.rmtree(target)
        shutil.copy2(source, target)


class SolidArchiveStrategy(ArchiveStrategy):
    """Pack all sources into one 7z archive using an external archiver.

    The archiver process is awaited, so the archive is complete (or the
    failure known) when ``apply`` returns.
    """

    compression = Compression.SOLID

    def __init__(self, archiver: str | None = None) -> None:
        self.archiver = archiver

    def find_archiver(self) -> str:
        """Locate the archiver binary."""
        if self.archiver:
            found = shutil.which(self.archiver)
            if found is None:
                raise ArchiveError(f"Archiver not found: {self.archiver}")
            return found

        for name in SOLID_ARCHIVERS:
            found = shutil.which(name)
            if found:
                return found
        raise ArchiveError(
            f"No 7z archiver found in PATH (tried: {', '.join(SOLID_ARCHIVERS)})"
        )

    def apply(self, sources, destination_root, entry, log=None):
        log = log or logger
        if not sources:
            return []

        target = archive_target(sources, destination_root, entry)
        command = [self.find_archiver(), "a", "-y", str(target)]
        command.extend(str(s) for s in sources)

        # 7z would update an existing archive instead of replacing it
        if target.exists():
            target.unlink()

        log.debug("Executing: %s", " ".join(command))
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            raise ArchiveError(f"Cannot run archiver: {e}")

        if result.stdout:
            log.debug("Archiver output: %s", result.stdout.strip())
        if result.returncode != 0:
            raise ArchiveError(
                f"Archiver exited with code {result.returncode}: "
                f"{(result.stderr or result.stdout or '').strip()}"
            )

        log_transfer(log, sources, target)
        return [target]


class ZipArchiveStrategy(ArchiveStrategy):
    """Pack all sources into one zip archive."""

    compression = Compression.ZIP

    def apply(self, sources, destination_root, entry, log=None):
        log = log or logger
        if not sources:
            return []

        target = archive_target(sources, destination_root, entry)
        try:
            write_zip(sources, target)
        except (OSError, zipfile.BadZipFile, ValueError) as e:
            if target.exists():
                try:
                    target.unlink()
                except OSError:
                    log.warning("Could not remove partial archive %s", target)
            raise ArchiveError(f"Failed to create {target}: {e}")

        log_transfer(log, sources, target)
        return [target]


def write_zip(sources: Sequence[Path], target: Path) -> None:
    """Write a zip with files at the root and folders under their own name."""
    with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zipf:
        for source in sources:
            if source.is_dir():
                _add_directory_to_zip(zipf, source)
            else:
                zipf.write(source, source.name)


def _add_directory_to_zip(zipf: zipfile.ZipFile, directory: Path) -> None:
    base = directory.parent
    zipf.write(directory, directory.name)
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for name in dirs:
            path = Path(root, name)
            zipf.write(path, path.relative_to(base))
        for name in sorted(files):
            path = Path(root, name)
            zipf.write(path, path.relative_to(base))


def get_strategy(compression: Compression, archiver: str | None = None) -> ArchiveStrategy:
    """Return the strategy implementing ``compression``."""
    if compression is Compression.SOLID:
        return SolidArchiveStrategy(archiver)
    if compression is Compression.ZIP:
        return ZipArchiveStrategy()
    return CopyStrategy()
