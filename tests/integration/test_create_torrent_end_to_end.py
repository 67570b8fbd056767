"""End-to-end tests: command line in, verified .torrent out."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
from click.testing import CliRunner

pytestmark = [pytest.mark.integration]

from torrentize.cli.main import cli
from torrentize.core.bencode import decode

TRACKERS = ["http://one.example/announce", "https://two.example/announce"]


def _verify_pieces(info: dict, root: Path) -> None:
    """Re-read the files in torrent order and check every piece digest."""
    piece_length = info[b"piece length"]
    if b"files" in info:
        paths = [root.joinpath(*(p.decode() for p in f[b"path"])) for f in info[b"files"]]
    else:
        paths = [root]
    stream = b"".join(path.read_bytes() for path in paths)
    pieces = info[b"pieces"]
    assert len(pieces) == 20 * -(-len(stream) // piece_length)
    for index in range(len(pieces) // 20):
        chunk = stream[index * piece_length : (index + 1) * piece_length]
        assert pieces[index * 20 : (index + 1) * 20] == hashlib.sha1(chunk).digest()


def test_multi_file_tree(make_tree, tmp_path):
    files = {
        "cover.jpg": bytes(range(256)) * 9,
        "disc1/01.flac": b"a" * 5000,
        "disc1/02.flac": b"b" * 3333,
        "disc1/notes.txt": b"liner notes",
        "disc2/01.flac": b"c" * 4097,
        ".cache/thumb.db": b"junk",
        "disc2/tmp.part": b"partial",
    }
    root = make_tree(files, root_name="album")
    output = tmp_path / "album.torrent"

    result = CliRunner().invoke(
        cli,
        ["-q", "-b", "4", "-i", ".cache", "-i", "*.part", *TRACKERS, str(root)],
    )

    assert result.exit_code == 0, result.output
    doc = decode(output.read_bytes())
    assert doc[b"announce"] == TRACKERS[0].encode()
    assert doc[b"announce-list"] == [[t.encode()] for t in TRACKERS]

    info = doc[b"info"]
    assert info[b"name"] == b"album"
    assert [b"/".join(f[b"path"]) for f in info[b"files"]] == [
        b"cover.jpg",
        b"disc1/01.flac",
        b"disc1/02.flac",
        b"disc1/notes.txt",
        b"disc2/01.flac",
    ]
    _verify_pieces(info, root)


def test_single_file_is_reproducible(tmp_path):
    source = tmp_path / "image.iso"
    source.write_bytes(b"\x00\x01" * 200_000)
    first = tmp_path / "first.torrent"
    second = tmp_path / "second.torrent"

    runner = CliRunner()
    for output in (first, second):
        result = runner.invoke(cli, ["-q", "-o", str(output), TRACKERS[0], str(source)])
        assert result.exit_code == 0, result.output

    assert first.read_bytes() == second.read_bytes()
    info = decode(first.read_bytes())[b"info"]
    assert info[b"length"] == 400_000
    _verify_pieces(info, source)
