"""Command-line interface for XML exploration."""

from .main import main

__all__ = ["main"]
