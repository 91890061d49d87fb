"""Command-line interface package for reelbase."""

from reelbase.cli.main import CLIApplication, create_app, main

__all__ = ["CLIApplication", "create_app", "main"]
