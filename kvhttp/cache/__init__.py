"""Cache module for KV-HTTP."""

from .store import NOT_FOUND, Found, KVStore, Lookup, NotFound

__all__ = ["KVStore", "Found", "NotFound", "NOT_FOUND", "Lookup"]
