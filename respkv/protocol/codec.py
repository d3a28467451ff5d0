"""
RESP Codec Module

Encodes commands and replies into the wire format and decodes incoming
bytes back into WireValue objects.

Wire Format:
    +<text>\\r\\n                 simple string (no CR or LF allowed)
    -<text>\\r\\n                 error
    :<integer>\\r\\n              signed base-10 integer
    $<length>\\r\\n<bytes>\\r\\n    bulk string ($-1\\r\\n is null)
    *<count>\\r\\n<elements...>   array of any of the above

Decoding is a single recursive-descent pass over a cursor: each bulk
string consumes exactly its declared number of bytes and each array
consumes exactly its declared number of elements, so payloads may
contain CRLF anywhere.
"""

import re
from typing import Optional, Tuple

from .values import Array, BulkString, Error, Integer, SimpleString, WireValue
from ..config.settings import settings
from ..exceptions import (
    BulkLengthExceededError,
    DecodeError,
    IncompleteMessageError,
    InvalidSimpleStringError,
)

CRLF = b"\r\n"

SIMPLE_STRING = ord("+")
ERROR = ord("-")
INTEGER = ord(":")
BULK_STRING = ord("$")
ARRAY = ord("*")

_INTEGER_RE = re.compile(rb"[+-]?[0-9]+\Z")


class _Cursor:
    """Read position over a byte buffer."""

    def __init__(self, data: bytes, max_bulk_length: int, max_depth: int):
        self.data = data
        self.pos = 0
        self.max_bulk_length = max_bulk_length
        self.max_depth = max_depth

    def read_byte(self) -> int:
        if self.pos >= len(self.data):
            raise IncompleteMessageError(self.pos + 1)
        byte = self.data[self.pos]
        self.pos += 1
        return byte

    def read_line(self) -> bytes:
        """Return the bytes up to the next CRLF and move past it."""
        end = self.data.find(CRLF, self.pos)
        if end == -1:
            raise IncompleteMessageError(len(self.data) + 1)
        line = self.data[self.pos:end]
        self.pos = end + len(CRLF)
        return line

    def read_exact(self, length: int) -> bytes:
        end = self.pos + length
        if end > len(self.data):
            raise IncompleteMessageError(end)
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def read_value(self, depth: int = 0) -> WireValue:
        prefix = self.read_byte()

        if prefix == SIMPLE_STRING:
            line = self.read_line()
            if b"\r" in line or b"\n" in line:
                raise InvalidSimpleStringError()
            return SimpleString(_text(line))

        if prefix == ERROR:
            return Error(_text(self.read_line()))

        if prefix == INTEGER:
            return Integer(_parse_int(self.read_line(), "integer"))

        if prefix == BULK_STRING:
            return self._read_bulk_string()

        if prefix == ARRAY:
            return self._read_array(depth)

        raise DecodeError(f"unknown type prefix {chr(prefix)!r}")

    def _read_bulk_string(self) -> BulkString:
        length = _parse_int(self.read_line(), "bulk string length")
        if length == -1:
            return BulkString(None)
        if length < 0:
            raise DecodeError(f"invalid bulk string length {length}")
        # Checked before touching the payload
        if length >= self.max_bulk_length:
            raise BulkLengthExceededError(length, self.max_bulk_length)

        chunk = self.read_exact(length + len(CRLF))
        if chunk[length:] != CRLF:
            raise DecodeError("bulk string is not terminated by CRLF")
        return BulkString(bytes(chunk[:length]))

    def _read_array(self, depth: int) -> Array:
        count = _parse_int(self.read_line(), "array length")
        if count < 0:
            raise DecodeError(f"invalid array length {count}")
        if depth >= self.max_depth:
            raise DecodeError("arrays nested too deeply")

        items = []
        for _ in range(count):
            items.append(self.read_value(depth + 1))
        return Array(tuple(items))


def _parse_int(line: bytes, what: str) -> int:
    if not _INTEGER_RE.match(line):
        raise DecodeError(f"invalid {what} {bytes(line)!r}")
    return int(line)


def _text(line: bytes) -> str:
    # Undecodable bytes survive as surrogates and re-encode unchanged
    return bytes(line).decode("utf-8", errors="surrogateescape")


def parse_message(
        buffer: bytes,
        max_bulk_length: Optional[int] = None,
        max_depth: Optional[int] = None,
) -> Tuple[WireValue, int]:
    """
    Decode one value from the start of a buffer.

    Args:
        buffer: Bytes received so far
        max_bulk_length: Bulk lengths at or above this are rejected
            (default from settings)
        max_depth: Maximum array nesting (default from settings)

    Returns:
        Tuple of (decoded value, number of bytes consumed)

    Raises:
        IncompleteMessageError: buffer ends before the value is complete;
            the caller may read more bytes and try again
        DecodeError: buffer is malformed
    """
    cursor = _Cursor(
        buffer,
        max_bulk_length if max_bulk_length is not None else settings.MAX_BULK_LENGTH,
        max_depth if max_depth is not None else settings.MAX_NESTING_DEPTH,
    )
    value = cursor.read_value()
    return value, cursor.pos


def decode(data: bytes) -> WireValue:
    """
    Decode a buffer holding exactly one complete value.

    Examples:
        >>> decode(b":42\\r\\n")
        Integer(value=42)
        >>> decode(b"$-1\\r\\n")
        BulkString(data=None)
    """
    if len(data) < 2:
        raise DecodeError("unexpected token")
    if not data.endswith(CRLF):
        raise IncompleteMessageError(len(data) + 1)

    value, consumed = parse_message(data)
    if consumed != len(data):
        raise DecodeError("unexpected data after end of message")
    return value


# ============================================================================
# Encoding
# ============================================================================

def _line(prefix: bytes, text: str) -> bytes:
    payload = text.encode("utf-8", errors="surrogateescape")
    if b"\r" in payload or b"\n" in payload:
        raise ValueError("string cannot contain a LF or CR")
    return prefix + payload + CRLF


def _bulk(data: bytes) -> bytes:
    return b"$%d\r\n%s\r\n" % (len(data), data)


def encode_value(value: WireValue) -> bytes:
    """Serialize any WireValue (used for replies)."""
    if isinstance(value, SimpleString):
        return _line(b"+", value.text)
    if isinstance(value, Error):
        return _line(b"-", value.text)
    if isinstance(value, Integer):
        return b":%d\r\n" % value.value
    if isinstance(value, BulkString):
        if value.data is None:
            return b"$-1\r\n"
        return _bulk(value.data)
    if isinstance(value, Array):
        parts = [b"*%d\r\n" % len(value.items)]
        parts.extend(encode_value(item) for item in value.items)
        return b"".join(parts)
    raise TypeError(f"not a wire value: {value!r}")


def encode(command: str) -> bytes:
    """
    Encode a command line as an array of bulk strings.

    Tokens are split on whitespace; there is no quoting.

    Examples:
        >>> encode("LLEN mylist")
        b'*2\\r\\n$4\\r\\nLLEN\\r\\n$6\\r\\nmylist\\r\\n'
    """
    tokens = command.split()
    parts = [b"*%d\r\n" % len(tokens)]
    parts.extend(_bulk(token.encode("utf-8")) for token in tokens)
    return b"".join(parts)
