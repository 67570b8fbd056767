"""SHA-1 piece hashing for BitTorrent v1 metainfo.

All files of a torrent form one logical byte stream. ``PieceHasher`` cuts
that stream into ``piece_length`` pieces regardless of where file
boundaries fall, and produces one 20-byte SHA-1 digest per piece.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Callable

from torrentize.utils.exceptions import FileSystemError

logger = logging.getLogger(__name__)

DEFAULT_READ_CHUNK_SIZE = 64 * 1024


def _new_sha1():
    return hashlib.sha1()  # nosec B324 - SHA-1 required for v1 metainfo


class PieceHasher:
    """Accumulates a byte stream and hashes it piece by piece.

    The in-progress piece is kept as a running SHA-1 state plus its byte
    count, so at most ``piece_length`` bytes are ever pending and nothing
    is copied into an intermediate buffer.

    Example:
        >>> hasher = PieceHasher(4)
        >>> hasher.feed(b"abcdef")
        >>> len(hasher.finalize())
        2

    """

    def __init__(self, piece_length: int):
        """Initialize the hasher.

        Args:
            piece_length: Piece size in bytes, validated upstream to be positive

        """
        if piece_length <= 0:
            msg = f"piece_length must be positive, got {piece_length}"
            raise ValueError(msg)
        self.piece_length = piece_length
        self._current = _new_sha1()
        self._buffered_len = 0
        self._digests: list[bytes] = []
        self.total_bytes = 0

    @property
    def buffered_len(self) -> int:
        """Bytes of the in-progress piece, always below ``piece_length``."""
        return self._buffered_len

    @property
    def completed_pieces(self) -> int:
        return len(self._digests)

    def feed(self, data: bytes | bytearray | memoryview) -> None:
        """Add bytes to the stream; may complete any number of pieces."""
        view = memoryview(data).cast("B")
        offset = 0
        size = len(view)
        while offset < size:
            take = min(self.piece_length - self._buffered_len, size - offset)
            self._current.update(view[offset : offset + take])
            self._buffered_len += take
            offset += take
            if self._buffered_len == self.piece_length:
                self._complete_piece()
        self.total_bytes += size

    def _complete_piece(self) -> None:
        digest = self._current.digest()
        self._digests.append(digest)
        logger.debug(
            "Hashed piece %d: %d bytes -> %s",
            len(self._digests) - 1,
            self._buffered_len,
            digest.hex()[:16],
        )
        self._current = _new_sha1()
        self._buffered_len = 0

    def finalize(self) -> list[bytes]:
        """Hash any remainder as a short final piece and return all digests.

        Internal state is cleared afterwards, so a second call with no
        intervening ``feed`` returns an empty list.
        """
        if self._buffered_len:
            self._complete_piece()
        digests = self._digests
        self._digests = []
        self._current = _new_sha1()
        self._buffered_len = 0
        self.total_bytes = 0
        return digests


def hash_file_into(
    hasher: PieceHasher,
    path: Path,
    chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    on_chunk: Callable[[int], None] | None = None,
) -> int:
    """Stream one file's bytes into ``hasher``.

    Args:
        hasher: Hasher shared by every file of the torrent
        path: File to read
        chunk_size: Read size in bytes
        on_chunk: Optional callback receiving the size of each chunk read

    Returns:
        Number of bytes read from the file

    Raises:
        FileSystemError: If the file cannot be opened, read or closed

    """
    read = 0
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                hasher.feed(chunk)
                read += len(chunk)
                if on_chunk is not None:
                    on_chunk(len(chunk))
    except OSError as e:
        msg = f"cannot read {path}: {e}"
        raise FileSystemError(msg, {"path": str(path)}) from e
    return read


__all__ = ["DEFAULT_READ_CHUNK_SIZE", "PieceHasher", "hash_file_into"]
