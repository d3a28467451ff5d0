"""
Snapshot Module

Dumps the store to a flat file and reloads it.

File format:
    <key>:<value>\\n        one record per key, raw bytes, no escaping

The format is lossy:
    - list values are flattened to their items joined by a single space
    - expirations are dropped, so every reloaded key is a plain string
    - a key containing ':' or a key/value containing a newline does not
      survive a save/load round trip
"""

import logging
import os
from pathlib import Path
from typing import List, Tuple, Union

from ..cache.entry import ListValue, StoredValue, StringValue
from ..cache.store import KVStore
from ..config.settings import settings

logger = logging.getLogger(__name__)

SEPARATOR = b":"
LIST_ITEM_SEPARATOR = b" "


def flatten(value: StoredValue) -> bytes:
    """Render a stored value as the bytes written to the snapshot file."""
    if isinstance(value, ListValue):
        return LIST_ITEM_SEPARATOR.join(value.items)
    if isinstance(value, StringValue):
        return value.data
    raise TypeError(f"not a stored value: {value!r}")


class Snapshot:
    """
    Reads and writes snapshot files for a KVStore.

    Both operations go through the store's lock: save() works from a
    copy taken by KVStore.snapshot() and load() swaps the contents with
    KVStore.replace().

    Usage:
        snapshot = Snapshot("respkv.snapshot")
        snapshot.save(store)
        snapshot.load(store)
    """

    def __init__(self, path: Union[str, Path] = None):
        """
        Args:
            path: Snapshot file location (default from settings)
        """
        self.path = Path(path if path is not None else settings.SNAPSHOT_PATH)

    def save(self, store: KVStore) -> int:
        """
        Write every key in the store to the snapshot file.

        The file is written next to its final location and renamed into
        place, so a failed save leaves the previous snapshot intact.

        Returns:
            Number of records written

        Raises:
            OSError: the file could not be written
        """
        records = store.snapshot()
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        with open(tmp_path, "wb") as f:
            for key, value in records:
                f.write(key + SEPARATOR + flatten(value) + b"\n")
        os.replace(tmp_path, self.path)

        logger.info(f"Saved {len(records)} keys to {self.path}")
        return len(records)

    def read(self) -> List[Tuple[bytes, bytes]]:
        """
        Parse the snapshot file into (key, value) pairs.

        Raises:
            OSError: the file could not be read
        """
        items = []
        with open(self.path, "rb") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.rstrip(b"\n")
                if not line:
                    continue
                key, sep, value = line.partition(SEPARATOR)
                if not sep:
                    logger.warning(f"Skipping malformed snapshot record at {self.path}:{lineno}")
                    continue
                items.append((key, value))
        return items

    def load(self, store: KVStore) -> int:
        """
        Replace the contents of the store with the snapshot file.

        Returns:
            Number of keys loaded

        Raises:
            OSError: the file could not be read
        """
        loaded = store.replace(self.read())
        logger.info(f"Loaded {loaded} keys from {self.path}")
        return loaded
