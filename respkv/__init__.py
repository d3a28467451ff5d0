"""
RESP-KV: In-Memory Key-Value Server

A small key-value server speaking a RESP-style wire protocol, built
with Python asyncio and communicating over raw TCP sockets.
"""

__version__ = "1.0.0"
