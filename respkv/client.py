#!/usr/bin/env python3
"""
RESP-KV Client

One-shot request helpers plus a small interactive client for manually
testing the server. The server answers exactly one request per
connection, so every command opens a fresh connection.

Usage:
    respkv-cli                      # Connect to 127.0.0.1:6379
    respkv-cli --host 1.2.3.4       # Connect to specific host
    respkv-cli --port 8080          # Connect to specific port
"""

import argparse
import asyncio
import socket
import sys

from .config.settings import settings
from .exceptions import DecodeError
from .protocol.codec import decode, encode
from .protocol.values import Array, BulkString, Error, Integer, SimpleString, WireValue


def request(host: str, port: int, command: str, timeout: float = 5.0) -> WireValue:
    """
    Send one command over a new connection and decode the reply.

    Raises:
        OSError: connection or socket failure
        DecodeError: the reply is malformed or incomplete
    """
    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.sendall(encode(command))
        sock.shutdown(socket.SHUT_WR)

        response = b''
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            response += chunk

    return decode(response)


async def async_request(host: str, port: int, command: str) -> WireValue:
    """Asyncio version of request()."""
    reader, writer = await asyncio.open_connection(host, port)
    try:
        writer.write(encode(command))
        await writer.drain()
        response = await reader.read()
    finally:
        writer.close()
        await writer.wait_closed()

    return decode(response)


def format_reply(value: WireValue, indent: int = 0) -> str:
    """Render a reply for display."""
    if isinstance(value, SimpleString):
        return value.text
    if isinstance(value, Error):
        return f"(error) {value.text}"
    if isinstance(value, Integer):
        return f"(integer) {value.value}"
    if isinstance(value, BulkString):
        if value.data is None:
            return "(nil)"
        return '"' + value.data.decode('utf-8', errors='backslashreplace') + '"'
    if isinstance(value, Array):
        if not value.items:
            return "(empty array)"
        pad = " " * indent
        lines = []
        for i, item in enumerate(value.items, start=1):
            prefix = f"{i}) "
            lines.append(pad + prefix + format_reply(item, indent + len(prefix)).lstrip())
        return "\n".join(lines)
    raise TypeError(f"not a wire value: {value!r}")


def print_help():
    """Print help message."""
    print("""
RESP-KV Commands (case-sensitive):
----------------------------------
  SET <key> <value> [EX|PX|EXAT|PXAT <n>]   Store a string, optionally expiring
  GET <key>                                 Retrieve the string for a key
  DEL <key> [key ...]                       Delete keys (returns count)
  EXISTS <key> [key ...]                    Count keys that exist
  INCR <key> / DECR <key>                   Add or subtract 1
  LPUSH <key> <value> [value ...]           Push onto the head of a list
  RPUSH <key> <value> [value ...]           Append to the tail of a list
  SAVE / LOAD                               Write or reload the snapshot file

Client Commands:
----------------
  help                      Show this help message
  exit                      Exit the client
""")


def main():
    parser = argparse.ArgumentParser(
        description="Interactive client for RESP-KV"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help=f"Server host (default: {settings.HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help=f"Server port (default: {settings.PORT})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Socket timeout in seconds (default: 5.0)"
    )

    args = parser.parse_args()

    print("RESP-KV Client")
    print("==============")
    print(f"Server: {args.host}:{args.port}. Type 'help' for commands.\n")

    try:
        while True:
            try:
                command = input(">>> ").strip()
            except EOFError:
                print("\nGoodbye!")
                break

            if not command:
                continue

            if command.lower() == "help":
                print_help()
                continue

            if command.lower() in ("exit", "quit"):
                print("Goodbye!")
                break

            try:
                reply = request(args.host, args.port, command, args.timeout)
            except socket.timeout:
                print("ERROR: Request timed out")
                continue
            except OSError as e:
                print(f"ERROR: {e}")
                continue
            except DecodeError as e:
                print(f"ERROR: invalid reply: {e}")
                continue

            print(format_reply(reply))

    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")
        sys.exit(130)


if __name__ == "__main__":
    main()
