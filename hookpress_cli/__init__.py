"""Command line entrypoints for hookpress."""

from .main import main

__all__ = ["main"]
