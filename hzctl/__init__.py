"""Command-line tool that lists displays and batch-changes their refresh rates."""

__version__ = "0.1.0"
