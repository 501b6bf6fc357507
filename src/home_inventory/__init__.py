"""Home inventory catalog storage with portable backup and restore."""

__version__ = "0.1.0"
