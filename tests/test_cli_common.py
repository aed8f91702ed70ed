"""Tests for CLI common utilities."""

import argparse

import pytest

from bak_ng.cli.common import (
    add_verbosity_args,
    create_global_parser,
    get_log_level,
    load_existing_config,
)


class TestVerbosityArgs:
    """Tests for the shared output options."""

    def test_global_parser_has_no_help(self):
        """Test that the parent parser leaves -h to its children."""
        parser = create_global_parser()
        assert isinstance(parser, argparse.ArgumentParser)
        assert parser.add_help is False

    @pytest.mark.parametrize(
        "flag,attribute",
        [
            ("-v", "verbose"),
            ("--verbose", "verbose"),
            ("-q", "quiet"),
            ("--quiet", "quiet"),
            ("--debug", "debug"),
        ],
    )
    def test_flags(self, flag, attribute):
        """Test that each output flag sets its attribute."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args([flag])
        assert getattr(args, attribute) is True

    def test_log_file(self):
        """Test that --log-file takes a path."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["--log-file", "/tmp/bak.log"])
        assert args.log_file == "/tmp/bak.log"

    def test_defaults(self):
        """Test that every option is off by default."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args([])
        assert args.verbose is False
        assert args.quiet is False
        assert args.debug is False
        assert args.log_file is None


class TestGetLogLevel:
    """Tests for get_log_level function."""

    @pytest.mark.parametrize(
        "flags,expected",
        [
            ({"debug": True, "quiet": False, "verbose": False}, "DEBUG"),
            ({"debug": False, "quiet": True, "verbose": False}, "WARNING"),
            ({"debug": False, "quiet": False, "verbose": True}, "DEBUG"),
            ({"debug": False, "quiet": False, "verbose": False}, "INFO"),
            ({"debug": True, "quiet": True, "verbose": True}, "DEBUG"),
        ],
    )
    def test_levels(self, flags, expected):
        """Test the level chosen for each flag combination."""
        assert get_log_level(argparse.Namespace(**flags)) == expected

    def test_missing_attributes(self):
        """Test that a bare namespace means INFO."""
        assert get_log_level(argparse.Namespace()) == "INFO"


class TestLoadExistingConfig:
    """Tests for load_existing_config function."""

    def test_loads_config(self, config_file):
        """Test that an existing config is returned with its resolved path."""
        result = load_existing_config(str(config_file))

        assert result is not None
        path, config = result
        assert path == config_file
        assert len(config.entries) == 2

    def test_missing_file(self, tmp_path):
        """Test that a missing config returns None."""
        assert load_existing_config(str(tmp_path / "nope.json")) is None

    def test_unreadable_file(self, tmp_config_dir):
        """Test that an invalid config returns None."""
        bad = tmp_config_dir / "bad.json"
        bad.write_text("[")
        assert load_existing_config(str(bad)) is None
