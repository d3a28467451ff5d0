"""Protocol module for RESP-KV."""

from .codec import decode, encode, encode_value, parse_message
from .commands import Command, CommandType
from .parser import ProtocolParser
from .values import Array, BulkString, Error, Integer, SimpleString, WireValue

__all__ = [
    "Array",
    "BulkString",
    "Command",
    "CommandType",
    "Error",
    "Integer",
    "ProtocolParser",
    "SimpleString",
    "WireValue",
    "decode",
    "encode",
    "encode_value",
    "parse_message",
]
