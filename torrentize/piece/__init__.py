"""Piece hashing."""

from __future__ import annotations

from torrentize.piece.hasher import PieceHasher, hash_file_into

__all__ = ["PieceHasher", "hash_file_into"]
