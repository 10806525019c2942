"""Command-line client for the Download Station API of a Synology-style NAS."""

__version__ = "1.0.0"
