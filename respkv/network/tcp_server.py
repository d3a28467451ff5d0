"""
Async TCP Server Module

This module implements the asynchronous TCP server for RESP-KV.

Each connection carries exactly one request and one reply:

    Idle -> Reading -> Decoding -> Executing -> Replying -> Closed

The request is read in READ_BUFFER_SIZE chunks until a complete message
has been buffered, so requests larger than one read are not truncated.
Bytes after the first complete message are ignored.
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import Optional

from .dispatcher import CommandDispatcher
from ..cache.store import KVStore
from ..config.settings import settings
from ..exceptions import DecodeError, IncompleteMessageError
from ..persistence.snapshot import Snapshot
from ..protocol.codec import encode_value, parse_message
from ..protocol.values import Error, WireValue

logger = logging.getLogger(__name__)


class KVServer:
    """
    Asynchronous TCP server for the RESP-KV service.

    Each client connection is handled in its own coroutine, so a slow
    client only holds up its own connection. There is no cap on the
    number of connections and no read timeout.

    Usage:
        server = KVServer(host='127.0.0.1', port=6379)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address
        port: Server port number
        store: The KVStore instance shared by all connections
        dispatcher: Executes decoded requests against the store
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: KVStore = None,
            snapshot: Snapshot = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            store: KVStore instance (creates new one if not provided)
            snapshot: Snapshot used by SAVE/LOAD (default path from settings)
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.store = store if store is not None else KVStore()
        self.dispatcher = CommandDispatcher(self.store, snapshot)
        self.read_size = settings.READ_BUFFER_SIZE

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0

    async def read_request(self, reader: StreamReader) -> Optional[WireValue]:
        """
        Read from the client until one complete message is buffered.

        Returns:
            The decoded request, or None if the client closed the
            connection before sending a complete message

        Raises:
            DecodeError: the bytes received are not a valid message
        """
        buffer = bytearray()
        needed = 1
        while True:
            chunk = await reader.read(max(self.read_size, needed - len(buffer)))
            if not chunk:
                if buffer:
                    logger.debug(f"Connection closed mid-request after {len(buffer)} bytes")
                return None
            buffer.extend(chunk)

            # A shorter buffer would stop at the same place as the last attempt
            if len(buffer) < needed:
                continue
            try:
                request, consumed = parse_message(buffer)
            except IncompleteMessageError as exc:
                needed = exc.needed
                continue

            if consumed < len(buffer):
                logger.debug(f"Ignoring {len(buffer) - consumed} bytes after request")
            return request

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads one request, executes it, writes the reply and closes the
        connection.

        Args:
            reader: StreamReader for reading from the client
            writer: StreamWriter for writing to the client
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        logger.debug(f"Client connected: {addr}")

        try:
            try:
                request = await self.read_request(reader)
            except DecodeError as exc:
                logger.warning(f"Protocol error from {addr}: {exc}")
                writer.write(encode_value(Error(f"ERR protocol error: {exc}")))
                await writer.drain()
                return

            if request is None:
                logger.debug(f"Client disconnected: {addr}")
                return

            self._total_requests += 1
            reply = await self.dispatcher.dispatch_async(request)

            writer.write(encode_value(reply))
            await writer.drain()

        except ConnectionResetError:
            logger.debug(f"Connection reset by client: {addr}")
        except OSError as exc:
            logger.warning(f"I/O error on connection {addr}: {exc}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except OSError as exc:
                logger.debug(f"Error closing connection {addr}: {exc}")

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs forever (or until cancelled). Errors binding the listening
        socket propagate to the caller.

        Example:
            server = KVServer(port=6379)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Closes the server and waits for it to fully shut down.
        """
        if self._server is None:
            return

        self._server.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with server stats including connection counts,
            request counts, and store statistics.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "store_stats": self.store.get_stats(),
        }

