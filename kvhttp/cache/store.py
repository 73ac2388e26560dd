"""
Key-Value Store Module

This module implements the core key-value storage functionality.

The store is the only shared mutable state in the server: request handlers
run on a pool of worker threads and all of them reach into the same
KVStore. Every operation therefore takes the store lock for the duration of
a single dictionary insert, lookup or delete.

A lookup of an absent key is an expected outcome, not a failure, so get()
returns a Lookup value (Found or NOT_FOUND) instead of raising.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class Found:
    """Result of a successful lookup."""
    value: str


class NotFound:
    """Result of a lookup for a key that has no entry."""

    _instance = None

    def __new__(cls) -> "NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = NotFound()

Lookup = Union[Found, NotFound]


class KVStore:
    """
    Thread-safe in-memory key-value store.

    This class provides O(1) average-case time complexity for:
    - put: Insert or update a key-value pair
    - get: Retrieve a value by key
    - delete: Remove a key-value pair

    Keys and values are plain strings. There is no capacity limit, no key
    validation and no expiration: an entry lives until it is overwritten or
    deleted, and the whole mapping is discarded with the process.

    Internal Storage:
        A dict guarded by a single threading.Lock. Lock hold time is one
        dict operation, so no caller can block indefinitely.

    Usage:
        store = KVStore()
        store.put("user:1", "alice")
        result = store.get("user:1")
        if isinstance(result, Found):
            print(result.value)
    """

    def __init__(self):
        """Initialize an empty store."""
        self._store: Dict[str, str] = {}
        self._lock = threading.Lock()

        # Operation counters, updated under the same lock
        self._puts = 0
        self._gets = 0
        self._hits = 0
        self._deletes = 0

    def put(self, key: str, value: str) -> bool:
        """
        Insert or update a key-value pair.

        Args:
            key: The key to store
            value: The value to associate with the key (may be empty)

        Returns:
            True on success. Put never fails under normal operation.

        Time Complexity: O(1) average
        """
        with self._lock:
            self._store[key] = value
            self._puts += 1
        return True

    def get(self, key: str) -> Lookup:
        """
        Retrieve the value for a given key.

        Args:
            key: The key to look up

        Returns:
            Found(value) if the key has an entry, NOT_FOUND otherwise

        Time Complexity: O(1) average
        """
        with self._lock:
            self._gets += 1
            try:
                value = self._store[key]
            except KeyError:
                return NOT_FOUND
            self._hits += 1
        return Found(value)

    def delete(self, key: str) -> bool:
        """
        Delete a key-value pair.

        Deleting an absent key is a no-op that still succeeds, so callers
        cannot tell whether the key was present.

        Args:
            key: The key to delete

        Returns:
            True

        Time Complexity: O(1) average
        """
        with self._lock:
            self._store.pop(key, None)
            self._deletes += 1
        return True

    def size(self) -> int:
        """Get the current number of keys in the store."""
        with self._lock:
            return len(self._store)

    def clear(self) -> None:
        """Remove all keys from the store."""
        with self._lock:
            self._store.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Keys currently stored
            - puts, gets, deletes: Operation counts since creation
            - hits, misses: Outcome of get() calls
        """
        with self._lock:
            return {
                "total_keys": len(self._store),
                "puts": self._puts,
                "gets": self._gets,
                "hits": self._hits,
                "misses": self._gets - self._hits,
                "deletes": self._deletes,
            }
