"""Network module for RESP-KV."""

from .dispatcher import CommandDispatcher
from .tcp_server import KVServer

__all__ = ["CommandDispatcher", "KVServer"]
