"""Data models for torrentize.

Holds the file entries produced by traversal, the validated options that
drive a torrent build, and the configuration sections.

File names are kept as ``str`` the way ``os.fsdecode`` produces them:
bytes that are not valid UTF-8 appear as surrogate escapes, and
``os.fsencode`` gives back the exact on-disk bytes.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, Field, PlainValidator, field_validator

DEFAULT_PIECE_SIZE_KB = 256
MAX_IGNORE_PATTERNS = 256
PIECE_HASH_LENGTH = 20


def _validate_fs_name(value: Any) -> str:
    """Accept filesystem names, including surrogate-escaped ones."""
    if isinstance(value, bytes):
        return os.fsdecode(value)
    if not isinstance(value, str):
        msg = f"expected a file name, got {type(value).__name__}"
        raise ValueError(msg)
    return value


# pydantic-core's str validation rejects lone surrogates
FsName = Annotated[str, PlainValidator(_validate_fs_name)]


def _validate_fs_path(value: Any) -> Path:
    if isinstance(value, Path):
        return value
    return Path(_validate_fs_name(value))


FsPath = Annotated[Path, PlainValidator(_validate_fs_path)]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class OrderingPolicy(str, Enum):
    """File ordering inside a multi-file torrent."""

    LEXICOGRAPHIC = "lexicographic"  # full relative path, byte-wise
    EXTENSION_FIRST = "extension_first"  # directory, then extension, then path


class FileEntry(BaseModel):
    """A regular file found while walking a torrent root."""

    relative_path: FsName = Field(
        ...,
        description="Slash-separated path relative to the root, no leading slash",
    )
    absolute_path: FsPath = Field(..., description="Path used for reading the file")
    size_bytes: int = Field(..., ge=0, description="File size at enumeration time")

    model_config = {"frozen": True}

    @field_validator("relative_path")
    @classmethod
    def validate_relative_path(cls, v: str) -> str:
        """Reject absolute paths and empty components."""
        if v.startswith("/"):
            msg = f"relative_path must not start with '/': {v!r}"
            raise ValueError(msg)
        if any(part in ("", ".", "..") for part in v.split("/")):
            msg = f"relative_path has an empty or special component: {v!r}"
            raise ValueError(msg)
        return v

    @property
    def path_components(self) -> list[str]:
        """Path components, outermost directory first."""
        return self.relative_path.split("/")

    @property
    def name(self) -> str:
        """Basename of the file."""
        return self.path_components[-1]

    @property
    def directory(self) -> str:
        """Directory prefix, up to and excluding the final slash."""
        head, _sep, _tail = self.relative_path.rpartition("/")
        return head

    @property
    def extension(self) -> str:
        """Suffix after the last dot of the basename, or the whole name."""
        _head, sep, tail = self.name.rpartition(".")
        return tail if sep else self.name


class TorrentOptions(BaseModel):
    """Validated settings for building one or more torrents.

    Piece size is given in KiB as on the command line; ``piece_length``
    is the byte count the builder works with.
    """

    piece_size_kb: int = Field(
        default=DEFAULT_PIECE_SIZE_KB, description="Piece size in KiB"
    )
    private: bool = Field(default=False, description="Mark torrent private")
    ordering: OrderingPolicy = Field(
        default=OrderingPolicy.LEXICOGRAPHIC, description="File ordering policy"
    )
    ignore_patterns: list[str] = Field(
        default_factory=list, description="Glob patterns matched against basenames"
    )
    trackers: list[str] = Field(..., description="Tracker announce URLs")
    name: FsName | None = Field(None, description="Display name override")
    output: Path | None = Field(None, description="Output file or directory")
    quiet: bool = Field(default=False, description="Suppress progress lines")

    @field_validator("piece_size_kb")
    @classmethod
    def validate_piece_size(cls, v: int) -> int:
        """Piece size must be a positive number of KiB."""
        if v < 1:
            msg = f"impossible piece size: {v} KB"
            raise ValueError(msg)
        return v

    @field_validator("ignore_patterns")
    @classmethod
    def validate_ignore_patterns(cls, v: list[str]) -> list[str]:
        """Bound the number of ignore patterns."""
        if len(v) > MAX_IGNORE_PATTERNS:
            msg = f"too many ignore patterns ({len(v)} > {MAX_IGNORE_PATTERNS})"
            raise ValueError(msg)
        return v

    @field_validator("trackers")
    @classmethod
    def validate_trackers(cls, v: list[str]) -> list[str]:
        """At least one non-empty tracker URL is required."""
        if not v:
            msg = "no tracker URL given"
            raise ValueError(msg)
        if not all(v):
            msg = "tracker URL cannot be empty"
            raise ValueError(msg)
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is not None and not v:
            msg = "display name cannot be empty"
            raise ValueError(msg)
        return v

    @property
    def piece_length(self) -> int:
        """Piece length in bytes."""
        return self.piece_size_kb * 1024


class BuildSummary(BaseModel):
    """What a finished build wrote."""

    name: FsName
    multi_file: bool
    file_count: int = Field(..., ge=0)
    total_bytes: int = Field(..., ge=0)
    piece_length: int = Field(..., gt=0)
    piece_count: int = Field(..., ge=0)


class CreateConfig(BaseModel):
    """Defaults for torrent creation."""

    piece_size_kb: int = Field(
        default=DEFAULT_PIECE_SIZE_KB, ge=1, description="Piece size in KiB"
    )
    private: bool = Field(default=False, description="Mark torrents private")
    ordering: OrderingPolicy = Field(
        default=OrderingPolicy.LEXICOGRAPHIC, description="File ordering policy"
    )
    ignore_patterns: list[str] = Field(
        default_factory=list,
        max_length=MAX_IGNORE_PATTERNS,
        description="Default ignore patterns",
    )
    trackers: list[str] = Field(
        default_factory=list, description="Trackers appended to every torrent"
    )
    quiet: bool = Field(default=False, description="Suppress progress lines")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False, description="Write JSON records to the log file"
    )
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s.%(funcName)s: %(message)s",
        description="Log format string for file output",
    )


class Config(BaseModel):
    """Top-level configuration."""

    create: CreateConfig = Field(default_factory=CreateConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
