"""
Stored value, expiration and entry types held by the KVStore.
"""

import re
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Optional, Union

from ..exceptions import ExpirationFormatError


@dataclass
class StringValue:
    data: bytes


@dataclass
class ListValue:
    items: Deque[bytes] = field(default_factory=deque)


StoredValue = Union[StringValue, ListValue]

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INTEGER_RE = re.compile(rb"[+-]?[0-9]+\Z")


def parse_integer(data: bytes) -> int:
    """Parse a strict base-10 signed integer; raises ValueError otherwise."""
    if not _INTEGER_RE.match(data):
        raise ValueError(f"not an integer: {data!r}")
    return int(data)


class ExpireOption(Enum):
    """SET expiration options."""
    EX = "EX"      # seconds after the write
    PX = "PX"      # milliseconds after the write
    EXAT = "EXAT"  # absolute unix time in seconds
    PXAT = "PXAT"  # absolute unix time in milliseconds


@dataclass(frozen=True)
class Expiration:
    """
    Expiration attached to an entry by a SET.

    Attributes:
        option: How ``operand`` is interpreted
        operand: The integer given on the command line
        set_at: Unix time in seconds when the write happened
    """
    option: ExpireOption
    operand: int
    set_at: float

    @classmethod
    def parse(cls, option: bytes, operand: bytes, now: Optional[float] = None) -> "Expiration":
        """
        Build an Expiration from the raw SET arguments.

        Raises:
            ExpirationFormatError: unknown option, or an operand that is not
                a signed 64-bit integer
        """
        try:
            expire_option = ExpireOption(option.decode("ascii"))
            value = parse_integer(operand)
        except (UnicodeDecodeError, ValueError):
            raise ExpirationFormatError() from None
        if not INT64_MIN <= value <= INT64_MAX:
            raise ExpirationFormatError()

        return cls(
            option=expire_option,
            operand=value,
            set_at=time.time() if now is None else now,
        )

    def expires_at(self) -> float:
        """Unix time in seconds at which the entry expires."""
        if self.option == ExpireOption.EX:
            return self.set_at + self.operand
        if self.option == ExpireOption.PX:
            return self.set_at + self.operand / 1000
        if self.option == ExpireOption.EXAT:
            return float(self.operand)
        return self.operand / 1000

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (time.time() if now is None else now) > self.expires_at()


@dataclass
class Entry:
    key: bytes
    value: StoredValue
    expiration: Optional[Expiration] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        return self.expiration is not None and self.expiration.is_expired(now)
