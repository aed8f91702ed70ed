"""Core backup engine for bak-ng.

Source resolution, destination formatting, archive strategies, retention
pruning and the orchestrator that runs them entry by entry.
"""

from .archive import ArchiveError, get_strategy
from .operations import (
    BackupError,
    DestinationRootMissingError,
    NoEntriesError,
    prune_all,
    run_backup,
)
from .retention import prune
from .sources import NoSourceMatchedError, resolve_sources

__all__ = [
    "run_backup",
    "prune_all",
    "prune",
    "resolve_sources",
    "get_strategy",
    "ArchiveError",
    "BackupError",
    "DestinationRootMissingError",
    "NoEntriesError",
    "NoSourceMatchedError",
]
