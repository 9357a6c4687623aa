"""Surf spot forecast rating engine."""

__version__ = "0.1.0"
