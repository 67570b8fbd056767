"""Bencode encoding and decoding.

``BencodeEncoder`` is a streaming writer: callers nest ``open_*`` /
``close_*`` calls around ``write_int`` and ``write_bytestring`` and every
token goes straight to the sink, so a document is never held as a tree.
``encode`` and ``decode`` work on whole in-memory values.
"""

from __future__ import annotations

import io
import logging
from typing import Any, BinaryIO

from torrentize.utils.exceptions import BencodeError, FileSystemError

logger = logging.getLogger(__name__)

_LIST = b"l"
_DICT = b"d"
_END = b"e"


class BencodeEncoder:
    """Streaming bencode writer over a binary sink.

    Dictionary keys are written with ``write_bytestring`` and must
    alternate with values. Key order is the caller's responsibility.
    """

    def __init__(self, sink: BinaryIO, encoding: str = "utf-8"):
        """Initialize the encoder.

        Args:
            sink: Any object with a ``write(bytes)`` method
            encoding: Encoding used for ``str`` byte strings

        """
        self.sink = sink
        self.encoding = encoding
        # one entry per open container: [kind, items written so far]
        self._stack: list[list[Any]] = []
        self.bytes_written = 0

    @property
    def depth(self) -> int:
        """Number of currently open lists and dictionaries."""
        return len(self._stack)

    def _write(self, data: bytes | memoryview) -> None:
        try:
            self.sink.write(data)
        except OSError as e:
            name = getattr(self.sink, "name", repr(self.sink))
            msg = f"error writing to {name}: {e}"
            raise FileSystemError(msg, {"path": str(name)}) from e
        self.bytes_written += len(data)

    def _begin_value(self, is_key_candidate: bool) -> None:
        """Check the value against the enclosing dictionary's key/value slot."""
        if not self._stack:
            return
        frame = self._stack[-1]
        if frame[0] == _DICT and frame[1] % 2 == 0 and not is_key_candidate:
            msg = "bencode dictionary key must be a byte string"
            raise RuntimeError(msg)
        frame[1] += 1

    def write_int(self, value: int) -> None:
        """Write ``i<decimal>e``."""
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"Bencode integer expected, got {type(value).__name__}"
            raise BencodeError(msg)
        self._begin_value(is_key_candidate=False)
        self._write(b"i%de" % value)

    def write_bytestring(self, value: bytes | bytearray | memoryview | str) -> None:
        """Write ``<length>:<raw bytes>``; ``str`` is encoded first."""
        if isinstance(value, str):
            value = value.encode(self.encoding)
        elif not isinstance(value, (bytes, bytearray, memoryview)):
            msg = f"Bencode byte string expected, got {type(value).__name__}"
            raise BencodeError(msg)
        self._begin_value(is_key_candidate=True)
        self._write(b"%d:" % len(value))
        self._write(value)

    def write_bytestring_header(self, length: int) -> None:
        """Write only the length prefix of a byte string.

        The caller must follow up with exactly ``length`` bytes through
        ``write_raw``.
        """
        if length < 0:
            msg = f"byte string length cannot be negative: {length}"
            raise RuntimeError(msg)
        self._begin_value(is_key_candidate=True)
        self._write(b"%d:" % length)

    def write_raw(self, data: bytes | memoryview) -> None:
        """Write content bytes announced by ``write_bytestring_header``."""
        self._write(data)

    def open_list(self) -> None:
        self._begin_value(is_key_candidate=False)
        self._stack.append([_LIST, 0])
        self._write(_LIST)

    def close_list(self) -> None:
        self._close(_LIST)

    def open_dict(self) -> None:
        self._begin_value(is_key_candidate=False)
        self._stack.append([_DICT, 0])
        self._write(_DICT)

    def close_dict(self) -> None:
        self._close(_DICT)

    def _close(self, kind: bytes) -> None:
        if not self._stack or self._stack[-1][0] != kind:
            expected = "list" if kind == _LIST else "dictionary"
            msg = f"close of a {expected} that is not open"
            raise RuntimeError(msg)
        frame = self._stack.pop()
        if kind == _DICT and frame[1] % 2:
            msg = "bencode dictionary closed with a key but no value"
            raise RuntimeError(msg)
        self._write(_END)

    def finish(self) -> None:
        """Assert that every opened container was closed."""
        if self._stack:
            msg = f"{len(self._stack)} bencode container(s) left open"
            raise RuntimeError(msg)

    def write_value(self, obj: Any) -> None:
        """Write a whole Python value; dictionary keys are sorted."""
        if isinstance(obj, bool):
            msg = "Bencode cannot encode bool"
            raise BencodeError(msg)
        if isinstance(obj, int):
            self.write_int(obj)
        elif isinstance(obj, (bytes, bytearray, memoryview, str)):
            self.write_bytestring(obj)
        elif isinstance(obj, (list, tuple)):
            self.open_list()
            for item in obj:
                self.write_value(item)
            self.close_list()
        elif isinstance(obj, dict):
            items = []
            for key, value in obj.items():
                if isinstance(key, str):
                    key = key.encode(self.encoding)
                elif not isinstance(key, bytes):
                    msg = f"Bencode expects dict key as str|bytes, not {type(key).__name__}"
                    raise BencodeError(msg)
                items.append((key, value))
            self.open_dict()
            for key, value in sorted(items, key=lambda kv: kv[0]):
                self.write_bytestring(key)
                self.write_value(value)
            self.close_dict()
        else:
            msg = f"Bencode expects int|bytes|str|list|dict, not {type(obj).__name__}"
            raise BencodeError(msg)


class BencodeDecoder:
    """Standards-compliant bencode reader over an in-memory buffer."""

    def __init__(self, data: bytes):
        """Initialize decoder with the complete encoded document."""
        self.data = data
        self.pos = 0

    def decode(self) -> Any:
        """Decode one complete value and reject trailing data."""
        value = self._decode_value()
        if self.pos != len(self.data):
            msg = f"Trailing data after bencoded value at offset {self.pos}"
            raise BencodeError(msg)
        return value

    def _peek(self) -> int:
        if self.pos >= len(self.data):
            msg = "Unexpected end of bencoded data"
            raise BencodeError(msg)
        return self.data[self.pos]

    def _decode_value(self) -> Any:
        token = self._peek()
        if token == ord("i"):
            return self._decode_int()
        if token == ord("l"):
            return self._decode_list()
        if token == ord("d"):
            return self._decode_dict()
        if ord("0") <= token <= ord("9"):
            return self._decode_bytes()
        msg = f"Invalid bencode token {chr(token)!r} at offset {self.pos}"
        raise BencodeError(msg)

    def _decode_int(self) -> int:
        end = self.data.find(b"e", self.pos)
        if end == -1:
            msg = f"Unterminated integer at offset {self.pos}"
            raise BencodeError(msg)
        raw = self.data[self.pos + 1 : end]
        digits = raw[1:] if raw.startswith(b"-") else raw
        if (
            not digits.isdigit()
            or (digits.startswith(b"0") and digits != b"0")
            or raw == b"-0"
        ):
            msg = f"Invalid integer {raw!r} at offset {self.pos}"
            raise BencodeError(msg)
        self.pos = end + 1
        return int(raw)

    def _decode_bytes(self) -> bytes:
        colon = self.data.find(b":", self.pos)
        if colon == -1:
            msg = f"Missing ':' in byte string at offset {self.pos}"
            raise BencodeError(msg)
        raw = self.data[self.pos : colon]
        if not raw.isdigit() or (raw.startswith(b"0") and raw != b"0"):
            msg = f"Invalid byte string length {raw!r} at offset {self.pos}"
            raise BencodeError(msg)
        length = int(raw)
        start = colon + 1
        if start + length > len(self.data):
            msg = f"Byte string at offset {self.pos} runs past end of data"
            raise BencodeError(msg)
        self.pos = start + length
        return self.data[start : self.pos]

    def _decode_list(self) -> list[Any]:
        self.pos += 1
        result = []
        while self._peek() != ord("e"):
            result.append(self._decode_value())
        self.pos += 1
        return result

    def _decode_dict(self) -> dict[bytes, Any]:
        self.pos += 1
        result: dict[bytes, Any] = {}
        while self._peek() != ord("e"):
            if not ord("0") <= self._peek() <= ord("9"):
                msg = f"Dictionary key must be a byte string at offset {self.pos}"
                raise BencodeError(msg)
            key = self._decode_bytes()
            result[key] = self._decode_value()
        self.pos += 1
        return result


def encode(obj: Any, encoding: str = "utf-8") -> bytes:
    """Encode a Python value to bencoded bytes."""
    buffer = io.BytesIO()
    encoder = BencodeEncoder(buffer, encoding)
    encoder.write_value(obj)
    encoder.finish()
    return buffer.getvalue()


def decode(data: bytes) -> Any:
    """Decode bencoded bytes to Python values (byte strings stay bytes)."""
    if not isinstance(data, (bytes, bytearray)):
        msg = f"Bencode decode expects bytes, not {type(data).__name__}"
        raise BencodeError(msg)
    return BencodeDecoder(bytes(data)).decode()


__all__ = ["BencodeDecoder", "BencodeEncoder", "decode", "encode"]
