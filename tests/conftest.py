"""Pytest configuration and shared fixtures."""

import json
import logging

import pytest


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def backup_root(tmp_path):
    """Create an empty destination root."""
    root = tmp_path / "backup"
    root.mkdir()
    return root


@pytest.fixture
def source_tree(tmp_path):
    """Create a source folder with a few files and a nested folder."""
    data = tmp_path / "data"
    data.mkdir()
    (data / "app.log").write_text("log line\n")
    (data / "error.LOG").write_text("error line\n")
    (data / "notes.txt").write_text("some notes\n")
    nested = data / "nested"
    nested.mkdir()
    (nested / "inner.txt").write_text("inner\n")
    return data


@pytest.fixture
def sample_config_data(backup_root, source_tree):
    """Return a sample configuration as a dict."""
    return {
        "destinationRoot": str(backup_root),
        "entries": [
            {
                "source": str(source_tree / "notes.txt"),
                "name": "Notes",
                "description": "Plain copy",
            },
            {
                "source": str(source_tree),
                "match": "*.log",
                "compression": "zip",
                "subfolder": "logs",
                "rename": "/n_/s_/o",
                "name": "Logs",
                "keep": 2,
            },
        ],
    }


@pytest.fixture
def config_file(tmp_config_dir, sample_config_data):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "backup.json"
    config_path.write_text(json.dumps(sample_config_data, indent=2))
    return config_path


@pytest.fixture
def test_logger():
    """Logger handed to engine components instead of the module loggers."""
    log = logging.getLogger("bak_ng.tests")
    log.setLevel(logging.DEBUG)
    return log
