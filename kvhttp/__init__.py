"""
KV-HTTP: In-Memory Key-Value Store

An in-memory key-value store served over HTTP/1.1, built with Python
asyncio for connection handling and a worker thread pool for requests.
"""

__version__ = "1.0.0"
