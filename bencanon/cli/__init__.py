"""Command line interface for bencanon."""

from __future__ import annotations

from bencanon.cli.main import cli, main

__all__ = ["cli", "main"]
