"""Unit tests for piece hashing across file boundaries."""

from __future__ import annotations

import hashlib

import pytest

pytestmark = [pytest.mark.unit, pytest.mark.piece]

from torrentize.piece.hasher import PieceHasher, hash_file_into
from torrentize.utils.exceptions import FileSystemError


def _expected(data: bytes, piece_length: int) -> list[bytes]:
    return [
        hashlib.sha1(data[i : i + piece_length]).digest()
        for i in range(0, len(data), piece_length)
    ]


class TestPieceHasher:
    """Test feed / finalize behaviour."""

    def test_rejects_non_positive_piece_length(self):
        with pytest.raises(ValueError):
            PieceHasher(0)
        with pytest.raises(ValueError):
            PieceHasher(-16)

    def test_empty_stream_has_no_pieces(self):
        hasher = PieceHasher(1024)
        assert hasher.finalize() == []

    def test_empty_feed_is_noop(self):
        hasher = PieceHasher(4)
        hasher.feed(b"")
        assert hasher.buffered_len == 0
        assert hasher.finalize() == []

    def test_exact_multiple(self):
        data = b"abcdefgh"
        hasher = PieceHasher(4)
        hasher.feed(data)
        assert hasher.buffered_len == 0
        assert hasher.completed_pieces == 2
        assert hasher.finalize() == _expected(data, 4)

    def test_short_final_piece(self):
        data = b"abcdefghij"
        hasher = PieceHasher(4)
        hasher.feed(data)
        assert hasher.buffered_len == 2
        digests = hasher.finalize()
        assert len(digests) == 3
        assert digests[-1] == hashlib.sha1(b"ij").digest()

    def test_single_feed_spans_many_pieces(self):
        data = bytes(range(256)) * 10
        hasher = PieceHasher(100)
        hasher.feed(data)
        assert hasher.completed_pieces == len(data) // 100
        assert hasher.finalize() == _expected(data, 100)

    def test_stream_continues_across_feeds(self):
        """Pieces are cut from the concatenated stream, not per feed call."""
        hasher = PieceHasher(8)
        hasher.feed(b"first")
        hasher.feed(b"second")
        assert hasher.finalize() == _expected(b"firstsecond", 8)

    def test_digests_are_twenty_bytes(self):
        hasher = PieceHasher(3)
        hasher.feed(b"x" * 10)
        assert all(len(d) == 20 for d in hasher.finalize())

    def test_finalize_twice_returns_nothing_new(self):
        hasher = PieceHasher(4)
        hasher.feed(b"abcde")
        assert len(hasher.finalize()) == 2
        assert hasher.finalize() == []

    def test_feed_after_finalize_starts_fresh(self):
        hasher = PieceHasher(4)
        hasher.feed(b"abcde")
        hasher.finalize()
        hasher.feed(b"wxyz")
        assert hasher.finalize() == [hashlib.sha1(b"wxyz").digest()]

    def test_accepts_memoryview_and_bytearray(self):
        hasher = PieceHasher(4)
        hasher.feed(memoryview(b"ab"))
        hasher.feed(bytearray(b"cd"))
        assert hasher.finalize() == [hashlib.sha1(b"abcd").digest()]

    def test_total_bytes(self):
        hasher = PieceHasher(4)
        hasher.feed(b"abc")
        hasher.feed(b"defg")
        assert hasher.total_bytes == 7


class TestHashFileInto:
    """Test streaming files into a shared hasher."""

    def test_files_share_one_stream(self, tmp_path):
        first = tmp_path / "a.txt"
        second = tmp_path / "b.txt"
        first.write_bytes(b"0123456789")
        second.write_bytes(b"abcdefghij")

        hasher = PieceHasher(8)
        assert hash_file_into(hasher, first, chunk_size=3) == 10
        assert hash_file_into(hasher, second, chunk_size=3) == 10

        assert hasher.finalize() == _expected(b"0123456789abcdefghij", 8)

    def test_on_chunk_reports_sizes(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"x" * 10)
        seen = []
        hash_file_into(PieceHasher(4), path, chunk_size=4, on_chunk=seen.append)
        assert seen == [4, 4, 2]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty"
        path.write_bytes(b"")
        hasher = PieceHasher(4)
        assert hash_file_into(hasher, path) == 0
        assert hasher.finalize() == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileSystemError, match="cannot read"):
            hash_file_into(PieceHasher(4), tmp_path / "missing")
