"""
Protocol Parser Module

This module turns a decoded request into a Command object.

A request is an array whose elements are bulk strings (simple strings
are accepted too). The first element is the command name, matched
case-sensitively; the rest are the arguments.
"""

from typing import Dict, List, Optional, Tuple

from .commands import Command, CommandType
from .values import Array, BulkString, SimpleString, WireValue
from ..exceptions import ArityError, InvalidRequestError, UnknownCommandError

# Allowed argument counts per command: (minimum, maximum); None = unbounded
ARITY: Dict[CommandType, Tuple[int, Optional[int]]] = {
    CommandType.SET: (2, 4),
    CommandType.GET: (1, 1),
    CommandType.DEL: (1, None),
    CommandType.EXISTS: (1, None),
    CommandType.INCR: (1, 1),
    CommandType.DECR: (1, 1),
    CommandType.LPUSH: (2, None),
    CommandType.RPUSH: (2, None),
    CommandType.SAVE: (0, 0),
    CommandType.LOAD: (0, 0),
}

_COMMANDS = {command.value: command for command in CommandType}


class ProtocolParser:
    """
    Parser for decoded requests.

    Request format:
        *<n>\\r\\n$<len>\\r\\n<NAME>\\r\\n$<len>\\r\\n<arg>\\r\\n...

    Commands:
        SET <key> <value> [EX|PX|EXAT|PXAT <operand>]
        GET <key>
        DEL <key> [key ...]
        EXISTS <key> [key ...]
        INCR <key>
        DECR <key>
        LPUSH <key> <value> [value ...]
        RPUSH <key> <value> [value ...]
        SAVE
        LOAD
    """

    def parse_request(self, value: WireValue) -> Command:
        """
        Convert a decoded request into a Command.

        Args:
            value: The decoded request

        Returns:
            Command with the command type and raw argument bytes

        Raises:
            InvalidRequestError: request is not a non-empty array of strings
            UnknownCommandError: command name is not supported
            ArityError: wrong number of arguments
        """
        parts = self._string_parts(value)
        if not parts:
            raise InvalidRequestError()

        name = parts[0].decode("ascii", errors="replace")
        command_type = _COMMANDS.get(name)
        if command_type is None:
            raise UnknownCommandError(name)

        args = parts[1:]
        minimum, maximum = ARITY[command_type]
        if len(args) < minimum or (maximum is not None and len(args) > maximum):
            raise ArityError(name)
        # SET takes its expiration as an option/operand pair
        if command_type == CommandType.SET and len(args) == 3:
            raise ArityError(name)

        return Command(type=command_type, args=args)

    def _string_parts(self, value: WireValue) -> List[bytes]:
        if not isinstance(value, Array):
            raise InvalidRequestError()

        parts = []
        for item in value.items:
            if isinstance(item, BulkString) and item.data is not None:
                parts.append(item.data)
            elif isinstance(item, SimpleString):
                parts.append(item.text.encode("utf-8", errors="surrogateescape"))
            else:
                raise InvalidRequestError()
        return parts
