"""
Key-Value Store Module

This module implements the shared storage behind every command.

Each key holds either a string or a list, plus an optional expiration.
All access goes through KVStore methods, each of which holds the store's
single lock for its whole read-modify-write span. The underlying mapping
is never handed out.
"""

import threading
import time
from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .entry import (
    INT64_MAX,
    INT64_MIN,
    Entry,
    Expiration,
    ListValue,
    StoredValue,
    StringValue,
    parse_integer,
)
from ..exceptions import NotIntegerError, WrongTypeError


def _copy(value: StoredValue) -> StoredValue:
    if isinstance(value, ListValue):
        return ListValue(deque(value.items))
    return StringValue(value.data)


class KVStore:
    """
    In-memory key-value store with per-key expiration.

    Expiration is lazy: an expired key is deleted by whichever operation
    next looks it up. There is no background sweep.

    Internal Storage:
        Dict of key -> Entry, guarded by one threading.Lock. The lock is
        held across lazy eviction as well as the operation itself.

    Examples:
        >>> store = KVStore()
        >>> store.set(b"name", b"JOHN") is None
        True
        >>> store.set(b"name", b"JANE")
        StringValue(data=b'JOHN')
        >>> store.get(b"name")
        b'JANE'
    """

    def __init__(self):
        """Initialize an empty store."""
        self._entries: Dict[bytes, Entry] = {}
        self._lock = threading.Lock()

    def _lookup(self, key: bytes) -> Optional[Entry]:
        """Return the live entry for key, evicting it if expired. Lock must be held."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            # Lazy expiration
            del self._entries[key]
            return None
        return entry

    def set(
            self,
            key: bytes,
            value: bytes,
            expiration: Optional[Expiration] = None,
    ) -> Optional[StoredValue]:
        """
        Install a string value, replacing whatever the key held.

        Args:
            key: The key to store
            value: The string value
            expiration: Optional expiration recorded with this write

        Returns:
            The previous value if the key existed, None otherwise
        """
        with self._lock:
            previous = self._lookup(key)
            self._entries[key] = Entry(key, StringValue(value), expiration)
        return previous.value if previous is not None else None

    def get(self, key: bytes) -> Optional[bytes]:
        """
        Retrieve the string value for a key.

        Returns:
            The value, or None if the key is absent or has expired

        Raises:
            WrongTypeError: the key holds a list
        """
        with self._lock:
            entry = self._lookup(key)
            if entry is None:
                return None
            if not isinstance(entry.value, StringValue):
                raise WrongTypeError()
            return entry.value.data

    def lookup(self, key: bytes) -> Optional[StoredValue]:
        """Return a copy of whatever value the key holds, or None."""
        with self._lock:
            entry = self._lookup(key)
            return _copy(entry.value) if entry is not None else None

    def delete(self, *keys: bytes) -> int:
        """
        Delete keys.

        Returns:
            Number of keys that existed and were removed
        """
        removed = 0
        with self._lock:
            for key in keys:
                if self._lookup(key) is not None:
                    del self._entries[key]
                    removed += 1
        return removed

    def exists(self, *keys: bytes) -> int:
        """
        Count how many of the given keys are present.

        A key named more than once is counted each time.
        """
        with self._lock:
            return sum(1 for key in keys if self._lookup(key) is not None)

    def incr_by(self, key: bytes, delta: int) -> int:
        """
        Add delta to the integer stored at key.

        An absent key starts at "0". The result is stored back as its
        canonical decimal string; any expiration on the key is kept.

        Raises:
            NotIntegerError: the value is not a 64-bit base-10 integer,
                or the result would overflow
            WrongTypeError: the key holds a list
        """
        with self._lock:
            entry = self._lookup(key)
            if entry is None:
                entry = Entry(key, StringValue(b"0"))
            if not isinstance(entry.value, StringValue):
                raise WrongTypeError()

            try:
                current = parse_integer(entry.value.data)
            except ValueError:
                raise NotIntegerError() from None

            result = current + delta
            if not INT64_MIN <= current <= INT64_MAX or not INT64_MIN <= result <= INT64_MAX:
                raise NotIntegerError()

            entry.value = StringValue(str(result).encode("ascii"))
            self._entries[key] = entry
            return result

    def _push(self, key: bytes, values: Iterable[bytes], left: bool) -> int:
        with self._lock:
            entry = self._lookup(key)
            if entry is None:
                entry = Entry(key, ListValue())
            if not isinstance(entry.value, ListValue):
                raise WrongTypeError()

            items = entry.value.items
            for value in values:
                if left:
                    items.appendleft(value)
                else:
                    items.append(value)

            self._entries[key] = entry
            return len(items)

    def lpush(self, key: bytes, *values: bytes) -> int:
        """
        Insert values at the head of the list, one at a time.

        The last value given ends up frontmost.

        Returns:
            Length of the list after the push

        Raises:
            WrongTypeError: the key holds a string
        """
        return self._push(key, values, left=True)

    def rpush(self, key: bytes, *values: bytes) -> int:
        """Append values at the tail of the list in order. Returns the new length."""
        return self._push(key, values, left=False)

    def snapshot(self) -> List[Tuple[bytes, StoredValue]]:
        """
        Take a consistent copy of every live key and its value.

        Expired entries found along the way are evicted.
        """
        now = time.time()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return [(key, _copy(entry.value)) for key, entry in self._entries.items()]

    def replace(self, items: Iterable[Tuple[bytes, bytes]]) -> int:
        """
        Replace the entire contents of the store with plain string values.

        Returns:
            Number of keys in the store afterwards
        """
        entries = {key: Entry(key, StringValue(value)) for key, value in items}
        with self._lock:
            self._entries = entries
            return len(entries)

    def size(self) -> int:
        """
        Get the current number of keys in the store.

        Note: This may include expired keys that haven't been cleaned up yet.
        """
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Remove all keys from the store."""
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Total keys in store
            - string_keys: Keys holding strings
            - list_keys: Keys holding lists
            - volatile_keys: Keys with an expiration
            - expired_keys: Count of expired (but not yet evicted) keys
        """
        now = time.time()
        with self._lock:
            entries = list(self._entries.values())

        return {
            "total_keys": len(entries),
            "string_keys": sum(1 for e in entries if isinstance(e.value, StringValue)),
            "list_keys": sum(1 for e in entries if isinstance(e.value, ListValue)),
            "volatile_keys": sum(1 for e in entries if e.expiration is not None),
            "expired_keys": sum(1 for e in entries if e.is_expired(now)),
        }
