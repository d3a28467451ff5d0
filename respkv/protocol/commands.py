"""
Protocol Command Definitions

This module defines the request type handed to the dispatcher and the
helpers used to build replies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from .values import Array, BulkString


class CommandType(Enum):
    """Enumeration of supported command names (case-sensitive)."""
    SET = "SET"
    GET = "GET"
    DEL = "DEL"
    EXISTS = "EXISTS"
    INCR = "INCR"
    DECR = "DECR"
    LPUSH = "LPUSH"
    RPUSH = "RPUSH"
    SAVE = "SAVE"
    LOAD = "LOAD"


@dataclass
class Command:
    """
    Represents a parsed request.

    Attributes:
        type: The command being invoked
        args: Arguments following the command name, as raw bytes
    """
    type: CommandType
    args: List[bytes] = field(default_factory=list)

    @property
    def key(self) -> Optional[bytes]:
        """First argument, for single-key commands."""
        return self.args[0] if self.args else None


# ============================================================================
# Reply helpers
# ============================================================================

def bulk_array(items: Iterable[bytes]) -> Array:
    return Array(tuple(BulkString(item) for item in items))
