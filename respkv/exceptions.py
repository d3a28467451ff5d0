"""
Exception hierarchy for RESP-KV.

Decode errors are raised by the codec when a byte buffer is not a valid
message. Command errors are raised while executing a request and are
turned into error replies by the dispatcher; their message is the reply
text sent to the client.
"""


class RespKVError(Exception):
    """Base class for all RESP-KV errors."""


# ============================================================================
# Decode errors
# ============================================================================

class DecodeError(RespKVError):
    """The input is not a well-formed message."""


class IncompleteMessageError(DecodeError):
    """
    The buffer ended before the message was complete.

    ``needed`` is the smallest buffer length that could get further;
    parsing any shorter buffer fails the same way.
    """

    def __init__(self, needed: int = 0):
        super().__init__("unexpected termination")
        self.needed = needed


class InvalidSimpleStringError(DecodeError):
    """A simple string contained a CR or LF."""

    def __init__(self):
        super().__init__("string cannot contain a LF or CR")


class BulkLengthExceededError(DecodeError):
    """A bulk string declared a length over the hard ceiling."""

    def __init__(self, length: int, limit: int):
        super().__init__(f"bulk string length {length} exceeds limit of {limit} bytes")
        self.length = length
        self.limit = limit


# ============================================================================
# Command errors
# ============================================================================

class CommandError(RespKVError):
    """A command could not be executed. The message is sent to the client."""

    message = "ERR command failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)

    @property
    def reply_text(self) -> str:
        return str(self)


class WrongTypeError(CommandError):
    message = "WRONGTYPE Operation against a key holding the wrong kind of value"


class NotIntegerError(CommandError):
    message = "ERR value is not an integer or out of range"


class ExpirationFormatError(CommandError):
    message = "ERR invalid expire option or operand"


class InvalidRequestError(CommandError):
    message = "ERR invalid request"


class ArityError(CommandError):
    def __init__(self, command: str):
        super().__init__(f"ERR wrong number of arguments for '{command.lower()}' command")


class UnknownCommandError(CommandError):
    def __init__(self, command: str):
        # repr escapes control characters so the reply stays on one line
        super().__init__(f"ERR unknown command {command!r}")
