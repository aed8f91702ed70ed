"""bak-ng: bak_ng/__util__.py
Common path helpers and console formatting shared by the backup engine.
"""

import os
import re
from pathlib import Path

ENV_PLACEHOLDER = re.compile(r"%([^%]+)%")


def exists(path: Path | str) -> bool:
    """Return True if a file or folder exists at ``path``."""
    return os.path.exists(path)


def is_file(path: Path | str) -> bool:
    """Return True if ``path`` is an existing regular file."""
    return os.path.isfile(path)


def is_dir(path: Path | str) -> bool:
    """Return True if ``path`` is an existing directory."""
    return os.path.isdir(path)


def expand_env(value: str, environ=None) -> str:
    """Replace ``%VAR%`` placeholders with values from the environment.

    Unknown variables expand to an empty string.
    """
    env = os.environ if environ is None else environ
    return ENV_PLACEHOLDER.sub(lambda m: env.get(m.group(1), ""), value)


def resolve_path(value: str, environ=None) -> Path:
    """Expand placeholders and return an absolute, normalized path."""
    expanded = os.path.expanduser(expand_env(value, environ))
    return Path(os.path.normpath(os.path.abspath(expanded)))


def log_heading(caption: str = "") -> str:
    """Formatted heading for logging output sections"""
    return f"{'-' * 10} {caption} {'-' * 10}"
