"""Command-line interface."""

from .advise import cli

__all__ = ["cli"]
