"""Core backup operations: run every configured entry once.

Entries are processed strictly one after another. A failing entry is logged
and recorded in the run report; only a missing destination root or an empty
entry list stop the run before anything is processed.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .. import __util__, display_name
from ..config.schema import BackupConfig, BackupEntry
from .archive import ArchiveError, get_strategy
from .destination import (
    DestinationError,
    format_destination,
    target_directory,
)
from .retention import prune
from .sources import NoSourceMatchedError, resolve_sources

logger = logging.getLogger(__name__)


class BackupError(Exception):
    """A backup run cannot start."""

    pass


class DestinationRootMissingError(BackupError):
    """The configured destination root does not exist."""

    pass


class NoEntriesError(BackupError):
    """The configuration has no entries."""

    pass


class EntryStatus(str, Enum):
    SKIP_INACTIVE = "skipped (inactive)"
    SKIP_EMPTY_SOURCE = "skipped (no source)"
    NO_SOURCES = "no sources matched"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass
class EntryResult:
    """Outcome of one entry in a run."""

    index: int
    label: str
    status: EntryStatus
    sources: list[Path] = field(default_factory=list)
    outputs: list[Path] = field(default_factory=list)
    pruned: list[Path] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class RunReport:
    """Summary of a backup or prune run."""

    started: float = field(default_factory=time.time)
    finished: Optional[float] = None
    dry_run: bool = False
    results: list[EntryResult] = field(default_factory=list)

    def count(self, status: EntryStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def processed(self) -> int:
        return self.count(EntryStatus.PROCESSED)

    @property
    def failed(self) -> int:
        return self.count(EntryStatus.FAILED) + self.count(EntryStatus.NO_SOURCES)

    @property
    def skipped(self) -> int:
        return self.count(EntryStatus.SKIP_INACTIVE) + self.count(
            EntryStatus.SKIP_EMPTY_SOURCE
        )


def entry_label(entry: BackupEntry) -> str:
    """Display label: the entry name, else the basename of its first source."""
    if entry.name:
        return entry.name
    if entry.sources:
        return display_name(__util__.resolve_path(entry.sources[0]))
    return "(no source)"


def prepare_run(config: BackupConfig) -> Path:
    """Check the run preconditions and return the resolved destination root.

    Raises:
        DestinationRootMissingError: If the destination root doesn't exist
        NoEntriesError: If no entries are configured
    """
    if not config.destination_root:
        raise DestinationRootMissingError("No destination root configured")

    root = __util__.resolve_path(config.destination_root)
    if not __util__.is_dir(root):
        raise DestinationRootMissingError(f"The backup directory doesn't exist: {root}")

    if not config.entries:
        raise NoEntriesError("The backup entry list is empty")

    return root


def warn_prune_overlaps(
    config: BackupConfig, destination_root: Path, log: logging.Logger
) -> None:
    """Warn about pruning entries whose target folder is shared."""
    active = config.get_active_entries()
    folders: dict[Path, int] = {}
    for entry in active:
        folder = target_directory(destination_root, entry.subfolder)
        folders[folder] = folders.get(folder, 0) + 1

    for entry in active:
        if not (entry.rename and entry.keep):
            continue
        folder = target_directory(destination_root, entry.subfolder)
        if folders[folder] > 1:
            log.warning(
                "Entry %s prunes %s which other entries also write to; "
                "their outputs may be deleted if names overlap",
                entry_label(entry),
                folder,
            )


def _log_entry_heading(index: int, entry: BackupEntry, log: logging.Logger) -> str:
    label = entry_label(entry)
    log.info(__util__.log_heading(f"{index}. {label}"))
    if entry.description:
        log.info("Description: %s", entry.description)
    return label


def _plan_entry(
    result: EntryResult, entry: BackupEntry, root: Path, log: logging.Logger
) -> None:
    """Fill ``result`` with the outputs a run would produce."""
    strategy = get_strategy(entry.compression)
    batch = result.sources[:1] if strategy.batched else result.sources
    for source in batch:
        target = format_destination(root, display_name(source), entry, create=False)
        result.outputs.append(target)

    log.info("From: %s", "\n      ".join(str(s) for s in result.sources))
    log.info("Compression: %s", entry.compression.value)
    for target in result.outputs:
        log.info("Would write: %s", target)
    result.pruned = prune(
        entry,
        strategy.retention_sources(result.sources),
        root,
        log,
        dry_run=True,
        pending=result.outputs,
    )


def process_entry(
    index: int,
    entry: BackupEntry,
    destination_root: Path,
    log: logging.Logger,
    dry_run: bool = False,
    archiver: Optional[str] = None,
) -> EntryResult:
    """Back up a single entry: resolve, archive, then prune."""
    label = _log_entry_heading(index, entry, log)

    if not entry.active:
        log.info("Entry is inactive, skipping")
        return EntryResult(index, label, EntryStatus.SKIP_INACTIVE)

    if not entry.sources:
        log.warning("Entry has no source path, skipping")
        return EntryResult(index, label, EntryStatus.SKIP_EMPTY_SOURCE)

    result = EntryResult(index, label, EntryStatus.PROCESSED)

    try:
        result.sources = resolve_sources(entry, log)
    except NoSourceMatchedError as e:
        log.warning("%s: %s", label, e)
        result.status = EntryStatus.NO_SOURCES
        result.error = str(e)
        return result

    try:
        if dry_run:
            _plan_entry(result, entry, destination_root, log)
            return result

        strategy = get_strategy(entry.compression, archiver)
        result.outputs = strategy.apply(result.sources, destination_root, entry, log)
        if not result.outputs:
            result.status = EntryStatus.FAILED
            result.error = "Nothing was written"
            return result

        result.pruned = prune(
            entry, strategy.retention_sources(result.sources), destination_root, log
        )
    except (ArchiveError, DestinationError) as e:
        log.error("%s: %s", label, e)
        result.status = EntryStatus.FAILED
        result.error = str(e)
    except OSError as e:
        log.error("%s: %s", label, e)
        result.status = EntryStatus.FAILED
        result.error = str(e)

    return result


def run_backup(
    config: BackupConfig,
    log: logging.Logger | None = None,
    dry_run: bool = False,
    archiver: Optional[str] = None,
) -> RunReport:
    """Back up every entry of ``config`` in order.

    Args:
        config: Loaded configuration
        log: Logger receiving progress, defaults to the module logger
        dry_run: Resolve and report without writing or deleting anything
        archiver: Explicit 7z binary for solid archives

    Returns:
        Report with one result per entry

    Raises:
        BackupError: If the run preconditions are not met
    """
    log = log or logger
    root = prepare_run(config)
    warn_prune_overlaps(config, root, log)

    report = RunReport(dry_run=dry_run)
    for index, entry in enumerate(config.entries, start=1):
        report.results.append(
            process_entry(index, entry, root, log, dry_run=dry_run, archiver=archiver)
        )
    report.finished = time.time()

    return report


def prune_all(
    config: BackupConfig,
    log: logging.Logger | None = None,
    dry_run: bool = False,
) -> RunReport:
    """Apply retention to every active entry without backing anything up."""
    log = log or logger
    root = prepare_run(config)

    report = RunReport(dry_run=dry_run)
    for index, entry in enumerate(config.entries, start=1):
        label = entry_label(entry)
        if not entry.active:
            report.results.append(EntryResult(index, label, EntryStatus.SKIP_INACTIVE))
            continue
        if not entry.sources:
            report.results.append(
                EntryResult(index, label, EntryStatus.SKIP_EMPTY_SOURCE)
            )
            continue

        result = EntryResult(index, label, EntryStatus.PROCESSED)
        try:
            result.sources = resolve_sources(entry, log)
            strategy = get_strategy(entry.compression)
            result.pruned = prune(
                entry, strategy.retention_sources(result.sources), root, log, dry_run
            )
        except NoSourceMatchedError as e:
            log.warning("%s: %s", label, e)
            result.status = EntryStatus.NO_SOURCES
            result.error = str(e)
        except OSError as e:
            log.error("%s: %s", label, e)
            result.status = EntryStatus.FAILED
            result.error = str(e)
        report.results.append(result)
    report.finished = time.time()

    return report
