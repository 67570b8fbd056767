"""Exception hierarchy for torrentize.

Configuration problems are detected before any I/O begins; filesystem
problems abort the torrent currently being built.
"""

from __future__ import annotations

from typing import Any


class TorrentizeError(Exception):
    """Base exception for all torrentize errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize torrentize error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class DiskError(TorrentizeError):
    """Disk I/O related errors."""


class FileSystemError(DiskError):
    """Cannot open, read, stat or close a file or directory, or write the output."""


class ValidationError(TorrentizeError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Invalid piece length, tracker list, ignore patterns or config file."""


class TorrentError(ValidationError):
    """Torrent content that cannot be described consistently."""


class BencodeError(ValidationError):
    """Bencode encoding/decoding errors."""
