"""
Wire Value Definitions

Every message on the wire decodes to exactly one of these types:

    +OK\\r\\n            -> SimpleString("OK")
    -ERR bad\\r\\n       -> Error("ERR bad")
    :42\\r\\n            -> Integer(42)
    $5\\r\\nhello\\r\\n    -> BulkString(b"hello")
    $-1\\r\\n            -> BulkString(None)
    *2\\r\\n...          -> Array((..., ...))
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class SimpleString:
    text: str


@dataclass(frozen=True)
class Error:
    text: str


@dataclass(frozen=True)
class Integer:
    value: int


@dataclass(frozen=True)
class BulkString:
    """Binary-safe string. ``data`` is None for the null bulk string."""
    data: Optional[bytes]

    @property
    def is_null(self) -> bool:
        return self.data is None


@dataclass(frozen=True)
class Array:
    items: Tuple["WireValue", ...] = ()


WireValue = Union[SimpleString, Error, Integer, BulkString, Array]

OK = SimpleString("OK")
NULL = BulkString(None)
