"""Enumeration of the files that make up a multi-file torrent.

Walks a directory tree depth-first, skips ignored names and anything that
is neither a regular file nor a directory, and returns the files in a
deterministic order.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import stat
from pathlib import Path
from typing import Collection, Iterable, Sequence

from torrentize.models import FileEntry, OrderingPolicy
from torrentize.utils.exceptions import FileSystemError

logger = logging.getLogger(__name__)

_SPECIAL_NAMES = frozenset({".", ".."})

_FILE = "file"
_DIR = "dir"


def ordering_key(entry: FileEntry, ordering: OrderingPolicy) -> tuple[bytes, ...]:
    """Sort key for ``entry`` under ``ordering``.

    Components are compared as raw filesystem bytes. The full relative path
    is always the last component, which makes the order total.
    """
    full = os.fsencode(entry.relative_path)
    if ordering == OrderingPolicy.EXTENSION_FIRST:
        return (
            os.fsencode(entry.directory),
            os.fsencode(entry.extension),
            full,
        )
    return (full,)


def sort_entries(
    entries: Iterable[FileEntry], ordering: OrderingPolicy
) -> list[FileEntry]:
    """Return ``entries`` sorted under ``ordering``."""
    return sorted(entries, key=lambda entry: ordering_key(entry, ordering))


class PathCollector:
    """Collects regular files below a root directory.

    Symbolic links to regular files are included; symbolic links to
    directories are never followed, so link cycles cannot cause endless
    recursion.
    """

    def __init__(
        self,
        ordering: OrderingPolicy = OrderingPolicy.LEXICOGRAPHIC,
        ignore_patterns: Sequence[str] = (),
        skip_files: Collection[tuple[int, int]] = (),
    ):
        """Initialize the collector.

        Args:
            ordering: Order of the returned entries
            ignore_patterns: Glob patterns (``*`` and ``?``) matched against
                each file and directory basename
            skip_files: ``(st_dev, st_ino)`` pairs of files to leave out,
                such as the torrent being written

        """
        self.ordering = ordering
        self.ignore_patterns = tuple(ignore_patterns)
        self.skip_files = frozenset(skip_files)

    def is_ignored(self, name: str) -> bool:
        """Check a single path segment against the ignore patterns."""
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self.ignore_patterns)

    def collect(self, root_dir: str | Path) -> list[FileEntry]:
        """Enumerate and sort every regular file below ``root_dir``.

        Raises:
            FileSystemError: If the root or a subdirectory cannot be read

        """
        root = Path(root_dir)
        entries: list[FileEntry] = []
        # explicit stack keeps deep trees clear of the recursion limit
        pending: list[tuple[Path, tuple[str, ...]]] = [(root, ())]
        while pending:
            directory, prefix = pending.pop()
            subdirs = []
            for dir_entry in self._list_directory(directory):
                name = dir_entry.name
                if name in _SPECIAL_NAMES:
                    continue
                parts = (*prefix, name)
                relative = "/".join(parts)
                if self.is_ignored(name):
                    logger.debug("Ignoring %s", relative)
                    continue
                kind, st = self._classify(dir_entry, relative)
                if kind == _DIR:
                    subdirs.append((Path(dir_entry.path), parts))
                elif kind == _FILE:
                    if (st.st_dev, st.st_ino) in self.skip_files:
                        logger.debug("Skipping %s: excluded file", relative)
                        continue
                    entries.append(
                        FileEntry(
                            relative_path=relative,
                            absolute_path=Path(dir_entry.path),
                            size_bytes=st.st_size,
                        )
                    )
            # reversed so the first subdirectory listed is walked first
            pending.extend(reversed(subdirs))

        logger.debug("Collected %d files under %s", len(entries), root)
        return sort_entries(entries, self.ordering)

    def _list_directory(self, directory: Path) -> list[os.DirEntry[str]]:
        """Read a whole directory, closing the handle before returning."""
        try:
            with os.scandir(directory) as it:
                return list(it)
        except OSError as e:
            msg = f"cannot read directory {directory}: {e}"
            raise FileSystemError(msg, {"path": str(directory)}) from e

    def _classify(
        self, dir_entry: os.DirEntry[str], relative: str
    ) -> tuple[str | None, os.stat_result | None]:
        """Return the entry kind and, for files, the stat of the file read.

        Entries that cannot be resolved, special files and links to
        directories are reported and yield ``(None, None)``.
        """
        try:
            is_link = dir_entry.is_symlink()
            if dir_entry.is_dir(follow_symlinks=False):
                return _DIR, None
            is_regular = dir_entry.is_file(follow_symlinks=False)
        except OSError as e:
            logger.warning("Skipping %s: cannot determine type: %s", relative, e)
            return None, None

        if is_regular:
            try:
                return _FILE, dir_entry.stat(follow_symlinks=False)
            except OSError as e:
                msg = f"cannot stat {dir_entry.path}: {e}"
                raise FileSystemError(msg, {"path": dir_entry.path}) from e

        if is_link:
            try:
                target = dir_entry.stat(follow_symlinks=True)
            except OSError as e:
                logger.warning("Skipping unresolvable symbolic link %s: %s", relative, e)
                return None, None
            if stat.S_ISREG(target.st_mode):
                return _FILE, target
            if stat.S_ISDIR(target.st_mode):
                logger.warning("Skipping symbolic link to directory %s", relative)
                return None, None

        logger.warning("Skipping non-regular file %s", relative)
        return None, None


def collect(
    root_dir: str | Path,
    ordering: OrderingPolicy = OrderingPolicy.LEXICOGRAPHIC,
    ignore_patterns: Sequence[str] = (),
    skip_files: Collection[tuple[int, int]] = (),
) -> list[FileEntry]:
    """Enumerate the files of a multi-file torrent rooted at ``root_dir``."""
    return PathCollector(ordering, ignore_patterns, skip_files).collect(root_dir)


__all__ = ["PathCollector", "collect", "ordering_key", "sort_entries"]
