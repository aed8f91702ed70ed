"""Configuration system for bak-ng.

This module provides JSON configuration loading, saving and validation,
and the schema definitions for backup entries.
"""

from .loader import ConfigError, ConfigReadError, load_config, save_config
from .schema import BackupConfig, BackupEntry, Compression

__all__ = [
    "BackupConfig",
    "BackupEntry",
    "Compression",
    "load_config",
    "save_config",
    "ConfigError",
    "ConfigReadError",
]
