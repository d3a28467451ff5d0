"""Persistence module for RESP-KV."""

from .snapshot import Snapshot

__all__ = ["Snapshot"]
