"""nextjs-base-cli command-line interface."""

from src.scaffold.cli.app import main

__all__ = ["main"]
