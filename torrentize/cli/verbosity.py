"""Verbosity management for the torrentize CLI.

Maps ``-q`` and repeated ``-v`` flags to logging levels.
"""

from __future__ import annotations

import logging
from enum import IntEnum


class VerbosityLevel(IntEnum):
    """Verbosity levels for the CLI."""

    QUIET = 0  # -q: only errors, no progress lines
    NORMAL = 1  # Default: errors, warnings and progress lines
    VERBOSE = 2  # -v: All above + info records
    DEBUG = 3  # -vv: All above + debug records


class VerbosityManager:
    """Manages verbosity levels and maps them to logging levels."""

    # Map verbosity count to VerbosityLevel
    COUNT_TO_LEVEL: dict[int, VerbosityLevel] = {
        0: VerbosityLevel.NORMAL,
        1: VerbosityLevel.VERBOSE,
        2: VerbosityLevel.DEBUG,
    }

    # Map VerbosityLevel to logging level
    LEVEL_TO_LOGGING: dict[VerbosityLevel, int] = {
        VerbosityLevel.QUIET: logging.ERROR,
        VerbosityLevel.NORMAL: logging.WARNING,
        VerbosityLevel.VERBOSE: logging.INFO,
        VerbosityLevel.DEBUG: logging.DEBUG,
    }

    def __init__(self, verbosity_count: int = 0, quiet: bool = False):
        """Initialize verbosity manager.

        Args:
            verbosity_count: Number of -v flags (clamped to 0-2)
            quiet: -q given; wins over any -v

        """
        self.verbosity_count = max(0, min(2, verbosity_count))
        if quiet:
            self.level = VerbosityLevel.QUIET
        else:
            self.level = self.COUNT_TO_LEVEL[self.verbosity_count]
        self.logging_level = self.LEVEL_TO_LOGGING[self.level]

    @classmethod
    def from_flags(cls, count: int, quiet: bool) -> VerbosityManager:
        return cls(count, quiet)

    def is_quiet(self) -> bool:
        return self.level == VerbosityLevel.QUIET

    def is_verbose(self) -> bool:
        """Check if verbose mode is enabled."""
        return self.level >= VerbosityLevel.VERBOSE

    def resolve_logging_level(self, configured: int) -> int:
        """Pick the effective logging level.

        Without ``-q`` or ``-v`` the configured level applies.
        """
        if self.level == VerbosityLevel.NORMAL:
            return configured
        return self.logging_level
