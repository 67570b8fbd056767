"""torrentize - build BitTorrent metainfo files from files and directories."""

from __future__ import annotations

__version__ = "0.1.0"

from torrentize.core.bencode import BencodeDecoder, BencodeEncoder, decode, encode
from torrentize.core.file_list import PathCollector, collect
from torrentize.core.metainfo import MetainfoBuilder, create_torrent_file
from torrentize.models import BuildSummary, FileEntry, OrderingPolicy, TorrentOptions
from torrentize.piece.hasher import PieceHasher
from torrentize.utils.exceptions import (
    BencodeError,
    ConfigurationError,
    FileSystemError,
    TorrentError,
    TorrentizeError,
)

__all__ = [
    "BencodeDecoder",
    "BencodeEncoder",
    "BencodeError",
    "BuildSummary",
    "ConfigurationError",
    "FileEntry",
    "FileSystemError",
    "MetainfoBuilder",
    "OrderingPolicy",
    "PathCollector",
    "PieceHasher",
    "TorrentError",
    "TorrentOptions",
    "TorrentizeError",
    "__version__",
    "collect",
    "create_torrent_file",
    "decode",
    "encode",
]
