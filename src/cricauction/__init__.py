"""Cricket player auction service."""

__version__ = "0.1.0"
