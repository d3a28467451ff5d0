"""
Command Dispatcher Module

Maps a decoded request to a KVStore operation and builds the reply.
"""

import asyncio
import logging
from typing import Optional

from ..cache.entry import Expiration, ListValue, StoredValue, StringValue
from ..cache.store import KVStore
from ..exceptions import CommandError
from ..persistence.snapshot import Snapshot
from ..protocol.commands import Command, CommandType, bulk_array
from ..protocol.parser import ProtocolParser
from ..protocol.values import NULL, OK, BulkString, Error, Integer, WireValue

logger = logging.getLogger(__name__)

# Commands doing file I/O; dispatch_async runs them in a worker thread
BLOCKING_COMMANDS = frozenset({CommandType.SAVE, CommandType.LOAD})


def stored_reply(value: StoredValue) -> WireValue:
    """Render a stored value as a reply: bulk string or array of bulk strings."""
    if isinstance(value, StringValue):
        return BulkString(value.data)
    if isinstance(value, ListValue):
        return bulk_array(value.items)
    raise TypeError(f"not a stored value: {value!r}")


class CommandDispatcher:
    """
    Executes requests against a KVStore.

    Command errors never escape: they come back as error replies and the
    store is left as it was.

    Usage:
        dispatcher = CommandDispatcher(store, Snapshot(path))
        reply = dispatcher.dispatch(decode(request_bytes))
    """

    def __init__(self, store: KVStore, snapshot: Optional[Snapshot] = None):
        self.store = store
        self.snapshot = snapshot if snapshot is not None else Snapshot()
        self.parser = ProtocolParser()
        self._handlers = {
            CommandType.SET: self._set,
            CommandType.GET: self._get,
            CommandType.DEL: self._del,
            CommandType.EXISTS: self._exists,
            CommandType.INCR: self._incr,
            CommandType.DECR: self._decr,
            CommandType.LPUSH: self._lpush,
            CommandType.RPUSH: self._rpush,
            CommandType.SAVE: self._save,
            CommandType.LOAD: self._load,
        }

    def dispatch(self, request: WireValue) -> WireValue:
        """
        Parse and execute a decoded request.

        Args:
            request: The decoded request (an array of bulk strings)

        Returns:
            The reply to send back to the client
        """
        try:
            command = self.parser.parse_request(request)
            return self.execute(command)
        except CommandError as exc:
            return self._error_reply(exc)

    async def dispatch_async(self, request: WireValue) -> WireValue:
        """
        Same as dispatch(), for use from the event loop.

        SAVE and LOAD run in a worker thread so file I/O does not stall
        other connections. The store lock keeps them consistent with
        commands running on the loop.
        """
        try:
            command = self.parser.parse_request(request)
            if command.type in BLOCKING_COMMANDS:
                return await asyncio.to_thread(self.execute, command)
            return self.execute(command)
        except CommandError as exc:
            return self._error_reply(exc)

    def _error_reply(self, exc: CommandError) -> Error:
        logger.debug(f"Command failed: {exc}")
        return Error(exc.reply_text)

    def execute(self, command: Command) -> WireValue:
        """Execute a parsed command. Raises CommandError on failure."""
        return self._handlers[command.type](command)

    def _set(self, command: Command) -> WireValue:
        key, value = command.args[0], command.args[1]
        expiration = None
        if len(command.args) == 4:
            expiration = Expiration.parse(command.args[2], command.args[3])

        previous = self.store.set(key, value, expiration)
        return stored_reply(previous) if previous is not None else OK

    def _get(self, command: Command) -> WireValue:
        value = self.store.get(command.key)
        return BulkString(value) if value is not None else NULL

    def _del(self, command: Command) -> WireValue:
        return Integer(self.store.delete(*command.args))

    def _exists(self, command: Command) -> WireValue:
        return Integer(self.store.exists(*command.args))

    def _incr(self, command: Command) -> WireValue:
        return Integer(self.store.incr_by(command.key, 1))

    def _decr(self, command: Command) -> WireValue:
        return Integer(self.store.incr_by(command.key, -1))

    def _lpush(self, command: Command) -> WireValue:
        return Integer(self.store.lpush(command.key, *command.args[1:]))

    def _rpush(self, command: Command) -> WireValue:
        return Integer(self.store.rpush(command.key, *command.args[1:]))

    def _save(self, command: Command) -> WireValue:
        try:
            self.snapshot.save(self.store)
        except OSError as exc:
            logger.error(f"SAVE failed: {exc}")
            return Error(f"ERR error saving snapshot: {exc.strerror or exc}")
        return OK

    def _load(self, command: Command) -> WireValue:
        try:
            self.snapshot.load(self.store)
        except OSError as exc:
            logger.error(f"LOAD failed: {exc}")
            return Error(f"ERR error loading snapshot: {exc.strerror or exc}")
        return OK
