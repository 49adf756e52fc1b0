"""Top-level package for whspr."""

__version__ = "0.1.0"
