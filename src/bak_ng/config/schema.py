"""Configuration schema definitions using dataclasses.

Defines the structure of the JSON backup configuration. Defaults are applied
by the loader, so every field here is always populated.
"""

from dataclasses import dataclass, field
from enum import Enum


class Compression(str, Enum):
    """Archive strategy selector for an entry."""

    NONE = "none"
    SOLID = "solid"
    ZIP = "zip"

    @property
    def extension(self) -> str:
        """File extension for outputs of this strategy, without the dot."""
        return _EXTENSIONS[self]


_EXTENSIONS = {
    Compression.NONE: "",
    Compression.SOLID: "7z",
    Compression.ZIP: "zip",
}


@dataclass
class BackupEntry:
    """One configured source-to-destination backup rule.

    Attributes:
        source: Path or list of paths, may contain %VAR% placeholders
        name: Display label, also available to rename templates as /n
        description: Display text
        compression: Archive strategy
        subfolder: Path below the destination root
        match: Wildcard filter applied to directory sources (*, ?, ;)
        rename: Naming template (/s /d /t /o /n /b)
        keep: Number of matching outputs to retain, 0 keeps everything
        active: Whether the entry is processed
    """

    source: str | list[str]
    name: str = ""
    description: str = ""
    compression: Compression = Compression.NONE
    subfolder: str = ""
    match: str = ""
    rename: str = ""
    keep: int = 0
    active: bool = True

    @property
    def sources(self) -> list[str]:
        """Source strings as a list, empty strings removed."""
        if isinstance(self.source, str):
            values = [self.source]
        else:
            values = list(self.source)
        return [s for s in values if s and s.strip()]

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "name": self.name,
            "description": self.description,
            "compression": self.compression.value,
            "subfolder": self.subfolder,
            "match": self.match,
            "rename": self.rename,
            "keep": self.keep,
            "active": self.active,
        }


@dataclass
class BackupConfig:
    """Root configuration object.

    Attributes:
        destination_root: Directory every entry is backed up under
        entries: Ordered list of backup entries
    """

    destination_root: str
    entries: list[BackupEntry] = field(default_factory=list)

    def get_active_entries(self) -> list[BackupEntry]:
        """Get list of active entries."""
        return [e for e in self.entries if e.active]

    def to_dict(self) -> dict:
        return {
            "destinationRoot": self.destination_root,
            "entries": [e.to_dict() for e in self.entries],
        }
