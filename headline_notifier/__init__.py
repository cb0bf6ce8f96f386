"""Periodic top-headline notifier."""

__version__ = "0.1.0"
