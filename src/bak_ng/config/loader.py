"""JSON configuration loading, saving and validation.

Missing optional fields are filled from ``ENTRY_DEFAULTS`` exactly once, here,
so the rest of the engine can rely on fully populated dataclasses.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .schema import BackupConfig, BackupEntry, Compression

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


class ConfigReadError(ConfigError):
    """The configuration file cannot be read, parsed or understood."""

    pass


# Defaults for every optional entry field
ENTRY_DEFAULTS: dict[str, Any] = {
    "name": "",
    "description": "",
    "compression": Compression.NONE,
    "subfolder": "",
    "match": "",
    "rename": "",
    "keep": 0,
    "active": True,
}

# Older configuration files used different key names
ROOT_KEYS = ("destinationRoot", "path")
ENTRIES_KEYS = ("entries", "backup")
SOURCE_KEYS = ("source", "from", "path")

COMPRESSION_ALIASES = {
    "": Compression.NONE,
    "none": Compression.NONE,
    "solid": Compression.SOLID,
    "7z": Compression.SOLID,
    "zip": Compression.ZIP,
}


def _first_key(data: dict[str, Any], keys: tuple[str, ...], default: Any) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def parse_compression(value: Any) -> Compression:
    """Parse a compression value, accepting legacy spellings."""
    if isinstance(value, Compression):
        return value
    if value is None:
        return Compression.NONE
    if not isinstance(value, str):
        raise ConfigReadError(f"Invalid compression value: {value!r}")
    try:
        return COMPRESSION_ALIASES[value.strip().lower()]
    except KeyError:
        raise ConfigReadError(
            f"Unknown compression '{value}' (expected one of: none, solid, zip)"
        )


def _parse_source(value: Any) -> str | list[str]:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigReadError(f"Entry source must be a string or list of strings: {value!r}")


def _parse_keep(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigReadError(f"Entry 'keep' must be an integer: {value!r}")
    if value < 0:
        raise ConfigReadError(f"Entry 'keep' must not be negative: {value}")
    return value


def _parse_active(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigReadError(f"Entry 'active' must be true or false: {value!r}")
    return value


def _parse_entry(data: dict[str, Any]) -> BackupEntry:
    """Parse a backup entry from dict."""
    if not isinstance(data, dict):
        raise ConfigReadError(f"Entry must be an object: {data!r}")

    values = dict(ENTRY_DEFAULTS)
    values.update({k: v for k, v in data.items() if k in ENTRY_DEFAULTS})

    for key in ("name", "description", "subfolder", "match", "rename"):
        if values[key] is None:
            values[key] = ""
        if not isinstance(values[key], str):
            raise ConfigReadError(f"Entry '{key}' must be a string: {values[key]!r}")

    return BackupEntry(
        source=_parse_source(_first_key(data, SOURCE_KEYS, "")),
        name=values["name"],
        description=values["description"],
        compression=parse_compression(values["compression"]),
        subfolder=values["subfolder"],
        match=values["match"],
        rename=values["rename"],
        keep=_parse_keep(values["keep"]),
        active=_parse_active(values["active"]),
    )


def _parse_config(data: Any) -> BackupConfig:
    """Parse the root configuration object."""
    if not isinstance(data, dict):
        raise ConfigReadError("Configuration root must be a JSON object")

    destination_root = _first_key(data, ROOT_KEYS, "")
    if not isinstance(destination_root, str):
        raise ConfigReadError(
            f"Destination root must be a string: {destination_root!r}"
        )

    entries_data = _first_key(data, ENTRIES_KEYS, [])
    if entries_data is None:
        entries_data = []
    if not isinstance(entries_data, list):
        raise ConfigReadError("Configuration 'entries' must be a list")

    return BackupConfig(
        destination_root=destination_root,
        entries=[_parse_entry(e) for e in entries_data],
    )


def _validate_config(config: BackupConfig) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    if not config.destination_root:
        warnings.append("No destination root configured")

    if not config.entries:
        warnings.append("No entries configured")

    seen: set[tuple[str, ...]] = set()
    for i, entry in enumerate(config.entries, start=1):
        label = entry.name or f"#{i}"
        if not entry.sources:
            warnings.append(f"Entry {label} has no source")
            continue

        key = tuple(os.path.normpath(s) for s in entry.sources)
        if key in seen:
            warnings.append(f"Entry {label} duplicates the source of another entry")
        seen.add(key)

        if entry.keep and not entry.rename:
            warnings.append(
                f"Entry {label} sets keep={entry.keep} without a rename template; "
                "old outputs will not be pruned"
            )

    # Pruning only looks at file names, so entries sharing a folder can collide
    folders: dict[str, int] = {}
    for entry in config.entries:
        folder = os.path.normpath(entry.subfolder.strip("/\\") or ".")
        folders[folder] = folders.get(folder, 0) + 1
    for entry in config.entries:
        folder = os.path.normpath(entry.subfolder.strip("/\\") or ".")
        if entry.keep and entry.rename and folders[folder] > 1:
            warnings.append(
                f"Entry {entry.name or entry.sources} prunes subfolder "
                f"'{entry.subfolder}' which is shared with other entries"
            )

    return warnings


def load_config(path: Path | str) -> tuple[BackupConfig, list[str]]:
    """Load and validate configuration from a JSON file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (BackupConfig object, list of warnings)

    Raises:
        ConfigReadError: If the file cannot be read, parsed or understood
    """
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigReadError(f"Invalid JSON syntax: {e}")
    except OSError as e:
        raise ConfigReadError(f"Cannot read config file: {e}")

    config = _parse_config(data)
    warnings = _validate_config(config)

    return config, warnings


def save_config(path: Path | str, config: BackupConfig) -> bool:
    """Write the configuration as pretty-printed JSON.

    Returns:
        True if the file was written
    """
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)
            f.write("\n")
    except OSError as e:
        logger.error("Error writing configuration %s: %s", path, e)
        return False
    return True
