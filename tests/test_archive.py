"""Tests for the archive strategies."""

import logging
import subprocess
import zipfile
from unittest.mock import patch

import pytest

from bak_ng.config.schema import BackupEntry, Compression
from bak_ng.core.archive import (
    ArchiveError,
    CopyStrategy,
    SolidArchiveStrategy,
    ZipArchiveStrategy,
    get_strategy,
)
from bak_ng.core.destination import format_destination


class TestGetStrategy:
    """Tests for get_strategy dispatch."""

    @pytest.mark.parametrize(
        "compression,cls",
        [
            (Compression.NONE, CopyStrategy),
            (Compression.SOLID, SolidArchiveStrategy),
            (Compression.ZIP, ZipArchiveStrategy),
        ],
    )
    def test_dispatch(self, compression, cls):
        """Test that each compression maps to its strategy."""
        strategy = get_strategy(compression)
        assert isinstance(strategy, cls)
        assert strategy.compression is compression

    def test_archiver_is_passed(self):
        """Test that an explicit archiver reaches the solid strategy."""
        assert get_strategy(Compression.SOLID, "/opt/7zz").archiver == "/opt/7zz"

    def test_retention_sources(self, tmp_path):
        """Test which sources retention looks at for each strategy."""
        sources = [tmp_path / "a", tmp_path / "b"]
        assert CopyStrategy().retention_sources(sources) == sources
        assert ZipArchiveStrategy().retention_sources(sources) == sources[:1]
        assert SolidArchiveStrategy().retention_sources(sources) == sources[:1]


class TestCopyStrategy:
    """Tests for CopyStrategy."""

    def test_copies_file_and_folder(self, source_tree, backup_root):
        """Test that files and folders are copied to their own outputs."""
        entry = BackupEntry(source="", subfolder="copy")
        sources = [source_tree / "notes.txt", source_tree / "nested"]

        outputs = CopyStrategy().apply(sources, backup_root, entry)

        target = backup_root / "copy"
        assert outputs == [target / "notes.txt", target / "nested"]
        assert (target / "notes.txt").read_text() == "some notes\n"
        assert (target / "nested" / "inner.txt").read_text() == "inner\n"

    def test_overwrites(self, source_tree, backup_root):
        """Test that a second copy replaces existing content."""
        entry = BackupEntry(source="")
        (backup_root / "notes.txt").write_text("stale")
        (backup_root / "nested").mkdir()
        (backup_root / "nested" / "inner.txt").write_text("stale")

        CopyStrategy().apply(
            [source_tree / "notes.txt", source_tree / "nested"], backup_root, entry
        )

        assert (backup_root / "notes.txt").read_text() == "some notes\n"
        assert (backup_root / "nested" / "inner.txt").read_text() == "inner\n"

    def test_failure_continues(self, source_tree, backup_root, test_logger, caplog):
        """Test that one failing source doesn't stop the others."""
        entry = BackupEntry(source="")
        missing = source_tree / "vanished.txt"

        with caplog.at_level(logging.ERROR):
            outputs = CopyStrategy().apply(
                [missing, source_tree / "notes.txt"], backup_root, entry, test_logger
            )

        assert outputs == [backup_root / "notes.txt"]
        assert "vanished.txt" in caplog.text

    def test_logs_from_and_to(self, source_tree, backup_root, test_logger, caplog):
        """Test that successful copies log their source and output."""
        entry = BackupEntry(source="")

        with caplog.at_level(logging.INFO):
            CopyStrategy().apply([source_tree / "notes.txt"], backup_root, entry, test_logger)

        assert f"From: {source_tree / 'notes.txt'}" in caplog.text
        assert f"To: {backup_root / 'notes.txt'}" in caplog.text

    def test_escaping_rename_is_not_written(
        self, source_tree, backup_root, test_logger, caplog
    ):
        """Test that a rename leaving the target folder copies nothing there."""
        outside = backup_root.parent / "outside"
        outside.mkdir()
        (outside / "keep.txt").write_text("mine")
        entry = BackupEntry(source="", subfolder="sub", rename="../../outside")

        with caplog.at_level(logging.ERROR):
            outputs = CopyStrategy().apply(
                [source_tree / "nested"], backup_root, entry, test_logger
            )

        assert outputs == []
        assert (outside / "keep.txt").read_text() == "mine"
        assert "outside" in caplog.text

    def test_destination_error_continues(self, source_tree, backup_root):
        """Test that an output path failure only skips its own source."""
        entry = BackupEntry(source="")
        real = format_destination

        def failing(root, name, *args, **kwargs):
            if name == "notes.txt":
                raise OSError("read-only")
            return real(root, name, *args, **kwargs)

        with patch("bak_ng.core.archive.format_destination", side_effect=failing):
            outputs = CopyStrategy().apply(
                [source_tree / "notes.txt", source_tree / "app.log"], backup_root, entry
            )

        assert outputs == [backup_root / "app.log"]


class TestZipArchiveStrategy:
    """Tests for ZipArchiveStrategy."""

    def test_single_archive_named_after_first_source(self, source_tree, backup_root):
        """Test that all sources go into one zip named after the first."""
        entry = BackupEntry(source="", compression=Compression.ZIP)
        sources = [source_tree / "app.log", source_tree / "nested"]

        outputs = ZipArchiveStrategy().apply(sources, backup_root, entry)

        assert outputs == [backup_root / "app.log.zip"]
        with zipfile.ZipFile(outputs[0]) as zipf:
            names = set(zipf.namelist())
        assert "app.log" in names
        assert "nested/" in names
        assert "nested/inner.txt" in names

    def test_contents(self, source_tree, backup_root):
        """Test that archived data matches the source."""
        entry = BackupEntry(source="", compression=Compression.ZIP, rename="logs")

        (output,) = ZipArchiveStrategy().apply(
            [source_tree / "notes.txt"], backup_root, entry
        )

        assert output == backup_root / "logs.zip"
        with zipfile.ZipFile(output) as zipf:
            assert zipf.read("notes.txt") == b"some notes\n"

    def test_failure_removes_partial_archive(self, source_tree, backup_root):
        """Test that a failure raises ArchiveError and leaves no archive."""
        entry = BackupEntry(source="", compression=Compression.ZIP)
        sources = [source_tree / "notes.txt", source_tree / "vanished.txt"]

        with pytest.raises(ArchiveError):
            ZipArchiveStrategy().apply(sources, backup_root, entry)

        assert not (backup_root / "notes.txt.zip").exists()

    def test_escaping_rename_raises(self, source_tree, backup_root):
        """Test that a rename leaving the target folder is an archive error."""
        entry = BackupEntry(source="", compression=Compression.ZIP, rename="../x")

        with pytest.raises(ArchiveError, match="notes.txt"):
            ZipArchiveStrategy().apply([source_tree / "notes.txt"], backup_root, entry)

        assert not (backup_root.parent / "x.zip").exists()


class TestSolidArchiveStrategy:
    """Tests for SolidArchiveStrategy with the archiver mocked."""

    def completed(self, returncode=0, stderr=""):
        return subprocess.CompletedProcess([], returncode, stdout="", stderr=stderr)

    def test_runs_archiver(self, source_tree, backup_root):
        """Test the archiver command line and the returned output."""
        entry = BackupEntry(source="", compression=Compression.SOLID, subfolder="7z")
        sources = [source_tree / "notes.txt", source_tree / "nested"]

        with patch("bak_ng.core.archive.shutil.which", return_value="/usr/bin/7z"), patch(
            "bak_ng.core.archive.subprocess.run", return_value=self.completed()
        ) as run:
            outputs = SolidArchiveStrategy().apply(sources, backup_root, entry)

        target = backup_root / "7z" / "notes.txt.7z"
        assert outputs == [target]
        command = run.call_args[0][0]
        assert command == [
            "/usr/bin/7z",
            "a",
            "-y",
            str(target),
            str(sources[0]),
            str(sources[1]),
        ]

    def test_replaces_existing_archive(self, source_tree, backup_root):
        """Test that an existing archive of the same name is removed first."""
        entry = BackupEntry(source="", compression=Compression.SOLID)
        existing = backup_root / "notes.txt.7z"
        existing.write_text("old archive")

        with patch("bak_ng.core.archive.shutil.which", return_value="/usr/bin/7z"), patch(
            "bak_ng.core.archive.subprocess.run", return_value=self.completed()
        ):
            SolidArchiveStrategy().apply([source_tree / "notes.txt"], backup_root, entry)

        assert not existing.exists()

    def test_nonzero_exit(self, source_tree, backup_root):
        """Test that an archiver failure raises ArchiveError."""
        entry = BackupEntry(source="", compression=Compression.SOLID)

        with patch("bak_ng.core.archive.shutil.which", return_value="/usr/bin/7z"), patch(
            "bak_ng.core.archive.subprocess.run",
            return_value=self.completed(2, "Fatal error"),
        ):
            with pytest.raises(ArchiveError, match="Fatal error"):
                SolidArchiveStrategy().apply(
                    [source_tree / "notes.txt"], backup_root, entry
                )

    def test_no_archiver(self, source_tree, backup_root):
        """Test that a missing archiver raises ArchiveError."""
        entry = BackupEntry(source="", compression=Compression.SOLID)

        with patch("bak_ng.core.archive.shutil.which", return_value=None):
            with pytest.raises(ArchiveError, match="No 7z archiver"):
                SolidArchiveStrategy().apply(
                    [source_tree / "notes.txt"], backup_root, entry
                )

    def test_explicit_archiver_missing(self, source_tree, backup_root):
        """Test that an explicit archiver must exist."""
        entry = BackupEntry(source="", compression=Compression.SOLID)

        with patch("bak_ng.core.archive.shutil.which", return_value=None):
            with pytest.raises(ArchiveError, match="/opt/7zz"):
                SolidArchiveStrategy("/opt/7zz").apply(
                    [source_tree / "notes.txt"], backup_root, entry
                )
