"""ricesync: remote file-store synchronization for rice records."""

__version__ = "1.0.0"
