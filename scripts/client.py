#!/usr/bin/env python3
"""
Interactive Test Client for KV-HTTP

A simple command-line client for manually testing the KV-HTTP server.

Usage:
    python scripts/client.py                  # Connect to localhost:8080
    python scripts/client.py --host 1.2.3.4   # Connect to specific host
    python scripts/client.py --port 9090      # Connect to specific port

Commands:
    PUT <key> <value...>      - Store a value (rest of the line)
    GET <key>                 - Retrieve a value
    DELETE <key>              - Delete a key
    help                      - Show this help
    exit                      - Exit client
"""

import argparse
import http.client
from urllib.parse import quote

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default


class KVHTTPClient:
    """Simple blocking HTTP client for KV-HTTP."""

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.conn = http.client.HTTPConnection(host, port, timeout=timeout)

    def request(self, method: str, key: str, value: str = None) -> tuple:
        """Send a request and return (status, reason, body)."""
        body = value.encode("utf-8") if value is not None else None
        self.conn.request(method, "/" + quote(key, safe="/"), body=body)
        response = self.conn.getresponse()
        return response.status, response.reason, response.read().decode("utf-8", "replace")

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def print_help():
    """Print help message."""
    print("""
KV-HTTP Commands:
-----------------
  PUT <key> <value...>      Store a value (everything after the key)
  GET <key>                 Retrieve the value for a key
  DELETE <key>              Delete a key

Client Commands:
----------------
  help                      Show this help message
  exit                      Exit the client

Examples:
---------
  PUT greeting hello world  Store "hello world" under "greeting"
  GET greeting              Get value for "greeting"
  DELETE greeting           Delete "greeting"
""")


def main():
    parser = argparse.ArgumentParser(
        description="Interactive test client for KV-HTTP"
    )
    parser.add_argument("--host", type=str, default="localhost",
                        help="Server host (default: localhost)")
    parser.add_argument("--port", type=int, default=8080,
                        help="Server port (default: 8080)")
    parser.add_argument("--timeout", type=float, default=5.0,
                        help="Socket timeout in seconds (default: 5.0)")

    args = parser.parse_args()

    print("KV-HTTP Client")
    print("==============")
    print(f"Server: http://{args.host}:{args.port}  (type 'help' for commands)\n")

    with KVHTTPClient(args.host, args.port, args.timeout) as client:
        while True:
            try:
                line = input(">>> ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                break

            if not line:
                continue
            if line.lower() == "help":
                print_help()
                continue
            if line.lower() in ("exit", "quit"):
                print("Goodbye!")
                break

            parts = line.split(maxsplit=2)
            method = parts[0].upper()
            if method not in ("GET", "PUT", "DELETE") or len(parts) < 2:
                print("Usage: GET <key> | PUT <key> <value...> | DELETE <key>")
                continue
            if method != "PUT" and len(parts) > 2:
                print(f"Usage: {method} <key>")
                continue

            value = parts[2] if method == "PUT" and len(parts) == 3 else ("" if method == "PUT" else None)

            try:
                status, reason, body = client.request(method, parts[1], value)
            except (OSError, http.client.HTTPException) as e:
                print(f"ERROR: {e}")
                client.close()
                continue

            print(f"{status} {reason}" + (f"\n{body}" if body else ""))


if __name__ == "__main__":
    main()
