"""Metainfo (.torrent) generation.

The document is streamed to the sink while files are hashed, so neither
the file list nor the piece table is ever assembled as a dictionary.
Keys are written in one fixed order, which is also the sorted order the
bencode format asks for:

- top level: ``announce``, ``announce-list`` (optional), ``info``
- single-file info: ``length``, ``name``, ``piece length``, ``pieces``,
  ``private`` (optional)
- multi-file info: ``files``, ``name``, ``piece length``, ``pieces``,
  ``private`` (optional)
- file entry: ``length``, ``path``
"""

from __future__ import annotations

import contextlib
import logging
import os
import stat
from pathlib import Path
from typing import BinaryIO, Callable, Collection, Sequence

from torrentize.core.bencode import BencodeEncoder
from torrentize.core.file_list import PathCollector
from torrentize.models import (
    PIECE_HASH_LENGTH,
    BuildSummary,
    FileEntry,
    OrderingPolicy,
    TorrentOptions,
)
from torrentize.piece.hasher import DEFAULT_READ_CHUNK_SIZE, PieceHasher, hash_file_into
from torrentize.utils.exceptions import (
    ConfigurationError,
    FileSystemError,
    TorrentError,
)
from torrentize.utils.logging_config import LoggingContext

logger = logging.getLogger(__name__)

FileCallback = Callable[[FileEntry], None]


class MetainfoBuilder:
    """Writes a BitTorrent v1 metainfo document for a file or directory.

    Every ``build`` call creates its own ``PieceHasher``; nothing carries
    over from one build to the next.
    """

    def __init__(
        self,
        on_file: FileCallback | None = None,
        read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    ) -> None:
        """Initialize the builder.

        Args:
            on_file: Called with each file entry just before it is hashed
            read_chunk_size: Size of reads from source files

        """
        self.on_file = on_file
        self.read_chunk_size = read_chunk_size

    def build(
        self,
        output_sink: BinaryIO,
        root_path: str | Path,
        display_name: str,
        piece_length: int,
        is_private: bool,
        ordering_policy: OrderingPolicy,
        tracker_urls: Sequence[str],
        ignore_patterns: Sequence[str] = (),
        skip_files: Collection[tuple[int, int]] = (),
    ) -> BuildSummary:
        """Write the metainfo document for ``root_path`` to ``output_sink``.

        Args:
            output_sink: Binary sink receiving the bencoded document
            root_path: File (single-file mode) or directory (multi-file mode)
            display_name: Value of ``info.name``
            piece_length: Piece size in bytes
            is_private: Write ``private = 1``
            ordering_policy: File order for multi-file torrents
            tracker_urls: Announce URLs; the first one is ``announce``
            ignore_patterns: Basename globs excluded in multi-file mode
            skip_files: ``(st_dev, st_ino)`` pairs of files never listed,
                normally the output file itself

        Returns:
            Summary of what was written

        Raises:
            ConfigurationError: Empty tracker list or non-positive piece length
            FileSystemError: A source or the sink failed
            TorrentError: Root is neither a file nor a directory, or a file
                changed size while being hashed

        """
        self._validate(display_name, piece_length, tracker_urls)
        root = Path(root_path)
        try:
            root_stat = root.stat()
        except OSError as e:
            msg = f"cannot stat {root}: {e}"
            raise FileSystemError(msg, {"path": str(root)}) from e

        if stat.S_ISDIR(root_stat.st_mode):
            multi_file = True
        elif stat.S_ISREG(root_stat.st_mode):
            multi_file = False
        else:
            msg = f"{root} is neither a regular file nor a directory"
            raise TorrentError(msg, {"path": str(root)})

        encoder = BencodeEncoder(output_sink)
        hasher = PieceHasher(piece_length)

        encoder.open_dict()
        self._write_announce(encoder, tracker_urls)
        encoder.write_bytestring(b"info")
        if multi_file:
            files = PathCollector(
                ordering_policy, ignore_patterns, skip_files
            ).collect(root)
            summary = self._write_multifile_info(
                encoder, hasher, files, display_name, is_private
            )
        else:
            entry = FileEntry(
                relative_path=root.name,
                absolute_path=root,
                size_bytes=root_stat.st_size,
            )
            summary = self._write_singlefile_info(
                encoder, hasher, entry, display_name, is_private
            )
        encoder.close_dict()
        encoder.finish()
        return summary

    def _validate(
        self, display_name: str, piece_length: int, tracker_urls: Sequence[str]
    ) -> None:
        if not tracker_urls:
            msg = "no tracker URL given"
            raise ConfigurationError(msg)
        if not all(tracker_urls):
            msg = "tracker URL cannot be empty"
            raise ConfigurationError(msg)
        if isinstance(piece_length, bool) or not isinstance(piece_length, int) or piece_length <= 0:
            msg = f"impossible piece length: {piece_length} bytes"
            raise ConfigurationError(msg)
        if not display_name:
            msg = "display name cannot be empty"
            raise ConfigurationError(msg)

    def _write_announce(
        self, encoder: BencodeEncoder, tracker_urls: Sequence[str]
    ) -> None:
        encoder.write_bytestring(b"announce")
        encoder.write_bytestring(tracker_urls[0])
        if len(tracker_urls) > 1:
            # one tier per tracker
            encoder.write_bytestring(b"announce-list")
            encoder.open_list()
            for url in tracker_urls:
                encoder.open_list()
                encoder.write_bytestring(url)
                encoder.close_list()
            encoder.close_list()

    def _write_singlefile_info(
        self,
        encoder: BencodeEncoder,
        hasher: PieceHasher,
        entry: FileEntry,
        display_name: str,
        is_private: bool,
    ) -> BuildSummary:
        encoder.open_dict()
        encoder.write_bytestring(b"length")
        encoder.write_int(entry.size_bytes)
        encoder.write_bytestring(b"name")
        encoder.write_bytestring(os.fsencode(display_name))
        encoder.write_bytestring(b"piece length")
        encoder.write_int(hasher.piece_length)
        self._hash_entry(hasher, entry)
        piece_count = self._write_pieces(encoder, hasher)
        self._write_private(encoder, is_private)
        encoder.close_dict()
        return BuildSummary(
            name=display_name,
            multi_file=False,
            file_count=1,
            total_bytes=entry.size_bytes,
            piece_length=hasher.piece_length,
            piece_count=piece_count,
        )

    def _write_multifile_info(
        self,
        encoder: BencodeEncoder,
        hasher: PieceHasher,
        files: list[FileEntry],
        display_name: str,
        is_private: bool,
    ) -> BuildSummary:
        piece_length = hasher.piece_length
        total = 0
        encoder.open_dict()
        encoder.write_bytestring(b"files")
        encoder.open_list()
        for entry in files:
            encoder.open_dict()
            encoder.write_bytestring(b"length")
            encoder.write_int(entry.size_bytes)
            encoder.write_bytestring(b"path")
            encoder.open_list()
            for component in entry.path_components:
                encoder.write_bytestring(os.fsencode(component))
            encoder.close_list()
            encoder.close_dict()
            # pieces run on across file boundaries
            self._hash_entry(hasher, entry)
            total += entry.size_bytes
        encoder.close_list()
        encoder.write_bytestring(b"name")
        encoder.write_bytestring(os.fsencode(display_name))
        encoder.write_bytestring(b"piece length")
        encoder.write_int(piece_length)
        piece_count = self._write_pieces(encoder, hasher)
        self._write_private(encoder, is_private)
        encoder.close_dict()
        return BuildSummary(
            name=display_name,
            multi_file=True,
            file_count=len(files),
            total_bytes=total,
            piece_length=piece_length,
            piece_count=piece_count,
        )

    def _hash_entry(self, hasher: PieceHasher, entry: FileEntry) -> None:
        if self.on_file is not None:
            self.on_file(entry)
        logger.debug("Hashing %s (%d bytes)", entry.relative_path, entry.size_bytes)
        read = hash_file_into(hasher, entry.absolute_path, self.read_chunk_size)
        if read != entry.size_bytes:
            msg = (
                f"{entry.absolute_path} changed size while hashing "
                f"({entry.size_bytes} bytes listed, {read} bytes read)"
            )
            raise TorrentError(msg, {"path": str(entry.absolute_path)})

    def _write_pieces(self, encoder: BencodeEncoder, hasher: PieceHasher) -> int:
        digests = hasher.finalize()
        encoder.write_bytestring(b"pieces")
        encoder.write_bytestring_header(PIECE_HASH_LENGTH * len(digests))
        for digest in digests:
            encoder.write_raw(digest)
        return len(digests)

    def _write_private(self, encoder: BencodeEncoder, is_private: bool) -> None:
        if is_private:
            encoder.write_bytestring(b"private")
            encoder.write_int(1)


def create_torrent_file(
    output_path: str | Path,
    root_path: str | Path,
    display_name: str,
    options: TorrentOptions,
    on_file: FileCallback | None = None,
) -> BuildSummary:
    """Build the torrent for ``root_path`` into the file ``output_path``.

    The output file is closed on every path; if the build fails the
    partially written file is removed before the error propagates. An
    output placed inside the torrented directory is not listed in it.
    """
    output = Path(output_path)
    builder = MetainfoBuilder(on_file=on_file)
    with LoggingContext(
        "torrent_build", source=str(root_path), output=str(output)
    ):
        if _same_file(output, root_path):
            msg = f"output {output} is the input file"
            raise TorrentError(msg, {"path": str(output)})

        try:
            sink = open(output, "wb")  # noqa: SIM115 - closed below on every path
        except OSError as e:
            msg = f"cannot create {output}: {e}"
            raise FileSystemError(msg, {"path": str(output)}) from e

        try:
            with sink:
                written = os.fstat(sink.fileno())
                summary = builder.build(
                    sink,
                    root_path,
                    display_name,
                    options.piece_length,
                    options.private,
                    options.ordering,
                    options.trackers,
                    options.ignore_patterns,
                    skip_files={(written.st_dev, written.st_ino)},
                )
        except OSError as e:
            # close() flushes, so a full disk can surface here
            _discard(output)
            msg = f"error writing to {output}: {e}"
            raise FileSystemError(msg, {"path": str(output)}) from e
        except BaseException:
            _discard(output)
            raise

    logger.info(
        "Wrote %s: %d files, %d bytes, %d pieces",
        output,
        summary.file_count,
        summary.total_bytes,
        summary.piece_count,
    )
    return summary


def _same_file(first: str | Path, second: str | Path) -> bool:
    try:
        return os.path.samefile(first, second)
    except OSError:
        return False


def _discard(path: Path) -> None:
    with contextlib.suppress(OSError):
        path.unlink()
        logger.debug("Removed partial output %s", path)


__all__ = ["FileCallback", "MetainfoBuilder", "create_torrent_file"]
