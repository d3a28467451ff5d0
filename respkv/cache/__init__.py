"""Cache module for RESP-KV."""

from .entry import Entry, Expiration, ExpireOption, ListValue, StoredValue, StringValue
from .store import KVStore

__all__ = [
    "Entry",
    "Expiration",
    "ExpireOption",
    "KVStore",
    "ListValue",
    "StoredValue",
    "StringValue",
]
