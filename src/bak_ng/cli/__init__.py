"""Command line interface for bak-ng."""
