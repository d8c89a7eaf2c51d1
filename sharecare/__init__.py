"""Threaded HTTP server and SQLite storage for a charity marketplace."""

__version__ = "0.1.0"
__all__ = ["database", "server"]