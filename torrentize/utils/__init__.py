"""Shared utilities and infrastructure."""

from __future__ import annotations

from torrentize.utils.exceptions import (
    BencodeError,
    ConfigurationError,
    DiskError,
    FileSystemError,
    TorrentError,
    TorrentizeError,
    ValidationError,
)
from torrentize.utils.logging_config import get_logger, setup_logging

__all__ = [
    "BencodeError",
    "ConfigurationError",
    "DiskError",
    "FileSystemError",
    "TorrentError",
    "TorrentizeError",
    "ValidationError",
    "get_logger",
    "setup_logging",
]
