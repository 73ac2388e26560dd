"""Network module for KV-HTTP."""

from .http_server import KVHTTPServer, run_server

__all__ = ["KVHTTPServer", "run_server"]
