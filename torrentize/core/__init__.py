"""Core metainfo generation.

This module contains the building blocks of a torrent file:
- Bencoding (streaming writer and reader)
- File enumeration
- Metainfo document assembly
"""

from __future__ import annotations

from torrentize.core.bencode import (
    BencodeDecoder,
    BencodeEncoder,
    decode,
    encode,
)
from torrentize.core.file_list import PathCollector, collect, sort_entries
from torrentize.core.metainfo import MetainfoBuilder, create_torrent_file

__all__ = [
    # Bencoding
    "BencodeDecoder",
    "BencodeEncoder",
    "decode",
    "encode",
    # File enumeration
    "PathCollector",
    "collect",
    "sort_entries",
    # Metainfo
    "MetainfoBuilder",
    "create_torrent_file",
]
