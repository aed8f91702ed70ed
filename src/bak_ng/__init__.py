"""bak-ng: bak_ng/__init__.py."""

from pathlib import Path


__version__ = "0.3.0"


def display_name(path: Path | str) -> str:
    """Return the last component of a path, or the path itself for roots."""
    return Path(path).name or str(path)
