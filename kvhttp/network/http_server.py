"""
Async HTTP Server Module

This module implements the listener that feeds requests to the
RequestHandler. It owns sockets, HTTP framing and connection lifetime; all
key-value semantics live in the handler and the store.

Concurrency model:
- One coroutine per client connection reads and frames requests
- RequestHandler.handle() runs on a ThreadPoolExecutor, so several requests
  touch the shared KVStore at the same time from different threads
- Connections are persistent (HTTP/1.1 keep-alive) until the client asks to
  close, sends a malformed request, or stays idle past CONNECTION_TIMEOUT
"""

import asyncio
import io
import logging
import re
from asyncio import StreamReader, StreamWriter
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Set

from ..cache.store import KVStore
from ..config.settings import settings
from ..protocol.errors import MalformedRequest, PayloadTooLarge, ProtocolError
from ..protocol.handler import RequestHandler
from ..protocol.messages import Request, Response
from ..protocol.parser import HEAD_TERMINATOR, HTTPParser, RequestHead

logger = logging.getLogger(__name__)

CONTINUE_RESPONSE = b"HTTP/1.1 100 Continue\r\n\r\n"

CHUNK_SIZE = re.compile(rb"[0-9A-Fa-f]+")


class KVHTTPServer:
    """
    Asynchronous HTTP server for the KV-HTTP service.

    Features:
    - Non-blocking socket I/O with asyncio
    - Handler calls dispatched to a bounded worker thread pool
    - Persistent connections (multiple requests per connection)
    - Content-Length and chunked request bodies
    - Graceful error handling and connection cleanup

    Usage:
        server = KVHTTPServer(host='0.0.0.0', port=8080, store=KVStore())
        await server.start()  # Runs until stop() is called

    Attributes:
        host: Server bind address (e.g., '0.0.0.0')
        port: Server port number (e.g., 8080)
        store: The KVStore instance shared by all connections
        handler: The RequestHandler dispatching to the store
        parser: The HTTPParser used for framing
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            store: KVStore = None,
            max_workers: int = None,
            max_body_size: int = None,
            connection_timeout: float = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            store: KVStore instance (creates new one if not provided)
            max_workers: Size of the handler thread pool (default from settings)
            max_body_size: Largest accepted request body in bytes
            connection_timeout: Seconds an idle connection is kept open
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.store = store if store is not None else KVStore()
        self.max_workers = max_workers if max_workers is not None else settings.MAX_WORKERS
        self.max_body_size = max_body_size if max_body_size is not None else settings.MAX_BODY_SIZE
        self.connection_timeout = (
            connection_timeout if connection_timeout is not None else settings.CONNECTION_TIMEOUT
        )
        self.parser = HTTPParser()
        self.handler = RequestHandler(self.store, self.parser)

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._writers: Set[StreamWriter] = set()
        self._running = False
        self._connection_count = 0
        self._total_requests = 0

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Protocol flow:
            1. Read the request head (up to the blank line)
            2. Parse it and read the body it announces
            3. Run the handler on the worker pool
            4. Send the response
            5. Repeat while the connection is persistent
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        self._writers.add(writer)
        logger.debug(f"Client connected: {addr}")

        try:
            while True:
                try:
                    data = await asyncio.wait_for(
                        reader.readuntil(HEAD_TERMINATOR),
                        timeout=self.connection_timeout,
                    )
                except asyncio.IncompleteReadError as exc:
                    if exc.partial.strip():
                        logger.debug(f"Client {addr} closed mid-request")
                    else:
                        logger.debug(f"Client disconnected: {addr}")
                    break
                except asyncio.LimitOverrunError:
                    await self._send(writer, Response.bad_request("request head too large"), False)
                    break
                except asyncio.TimeoutError:
                    logger.debug(f"Closing idle connection: {addr}")
                    break

                try:
                    head = self.parser.parse_head(data)
                    body = await asyncio.wait_for(
                        self._read_body(reader, writer, head),
                        timeout=self.connection_timeout,
                    )
                except ProtocolError as exc:
                    logger.debug(f"Rejecting request from {addr}: {exc.message}")
                    await self._send(writer, Response.from_error(exc), False)
                    break

                keep_alive = self.parser.keep_alive(head)
                request = Request(
                    method=head.method,
                    target=head.target,
                    headers=head.headers,
                    body=io.BytesIO(body),
                    version=head.version,
                )
                self._total_requests += 1

                loop = asyncio.get_running_loop()
                response = await loop.run_in_executor(self._executor, self.handler.handle, request)
                logger.debug(f"{addr} {head.method} {head.target} -> {response.status}")

                await self._send(writer, response, keep_alive)
                if not keep_alive:
                    break

        except (ConnectionResetError, BrokenPipeError):
            logger.debug(f"Connection reset by client: {addr}")
        except asyncio.IncompleteReadError:
            logger.debug(f"Client {addr} closed while sending a body")
        except asyncio.TimeoutError:
            logger.debug(f"Timed out reading body from {addr}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            self._writers.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as exc:
                logger.debug(f"Error closing connection {addr}: {exc}")

    async def _read_body(self, reader: StreamReader, writer: StreamWriter, head: RequestHead) -> bytes:
        """
        Read the request body announced by the head.

        Raises:
            MalformedRequest: bad Content-Length or chunk framing
            PayloadTooLarge: body exceeds max_body_size
        """
        chunked = self.parser.is_chunked(head)
        if "transfer-encoding" in head.headers and not chunked:
            raise MalformedRequest(
                f"unsupported transfer-encoding: {head.headers['transfer-encoding']!r}"
            )
        length = 0 if chunked else self.parser.body_length(head)
        if length > self.max_body_size:
            raise PayloadTooLarge(f"body of {length} bytes exceeds limit of {self.max_body_size}")

        if head.headers.get("expect", "").lower() == "100-continue" and (chunked or length):
            writer.write(CONTINUE_RESPONSE)
            await writer.drain()

        if chunked:
            return await self._read_chunked(reader)
        if length == 0:
            return b""
        return await reader.readexactly(length)

    async def _read_line(self, reader: StreamReader) -> bytes:
        """Read one framing line of a chunked body."""
        try:
            line = await reader.readline()
        except ValueError:
            raise MalformedRequest("chunk line too long") from None
        if not line.endswith(b"\n"):
            raise asyncio.IncompleteReadError(line, None)
        return line

    async def _read_chunked(self, reader: StreamReader) -> bytes:
        """Read a body sent with chunked transfer coding."""
        chunks = []
        total = 0
        while True:
            line = await self._read_line(reader)

            size_field = line.split(b";", 1)[0].strip()
            # Hex digits only: int() would also take "0x5", "+5" and "0_5"
            if not CHUNK_SIZE.fullmatch(size_field):
                raise MalformedRequest(f"invalid chunk size: {size_field!r}")
            size = int(size_field, 16)
            if size == 0:
                break

            total += size
            if total > self.max_body_size:
                raise PayloadTooLarge(f"chunked body exceeds limit of {self.max_body_size}")
            chunks.append(await reader.readexactly(size))
            if await reader.readexactly(2) != b"\r\n":
                raise MalformedRequest("chunk not terminated by CRLF")

        # Trailer fields are read and ignored
        while True:
            line = await self._read_line(reader)
            if line in (b"\r\n", b"\n"):
                break

        return b"".join(chunks)

    async def _send(self, writer: StreamWriter, response: Response, keep_alive: bool) -> None:
        writer.write(self.parser.format_response(response, keep_alive=keep_alive))
        await writer.drain()

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until stop() is called or the task is cancelled.

        Example:
            server = KVHTTPServer(port=8080)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            limit=settings.MAX_HEADER_SIZE,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="kvhttp-worker",
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs} with {self.max_workers} workers")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Stops accepting, closes open client connections and waits for the
        listener to shut down.
        """
        if self._server is None:
            return

        self._server.close()
        for writer in list(self._writers):
            writer.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection and request counts, responses per
            outcome, and store statistics.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "workers": self.max_workers,
            "open_connections": len(self._writers),
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "responses": self.handler.get_stats(),
            "store_stats": self.store.get_stats(),
        }


async def run_server(host: str = None, port: int = None, store: KVStore = None) -> None:
    """
    Convenience function to create and run the server.

    Usage:
        asyncio.run(run_server(port=8080))
    """
    server = KVHTTPServer(host=host, port=port, store=store)

    try:
        await server.start()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await server.stop()
