"""devstrip - find and remove stale developer build outputs and caches."""

__version__ = "0.1.0"
