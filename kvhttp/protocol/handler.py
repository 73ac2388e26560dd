"""
Request Handler Module

Translates one inbound Request into exactly one KVStore call and a Response.

Flow per call:
    1. Map the method to an operation (405 if unsupported)
    2. Extract the key from the target (400 if missing)
    3. Call the store
    4. Map the store result to a Response

handle() never raises: every failure is resolved to a response here. The
handler holds no per-request state and is safe to call from many threads.
"""

import logging
import threading
from collections import Counter
from typing import Dict

from ..cache.store import KVStore, NotFound
from .errors import InternalFault, ProtocolError, UnsupportedOperation
from .messages import OperationType, Outcome, Request, Response
from .parser import HTTPParser

logger = logging.getLogger(__name__)

# Values are stored as str; bytes that are not valid UTF-8 are kept as
# surrogates so a value reads back exactly as it was written.
VALUE_ENCODING = "utf-8"
VALUE_ERRORS = "surrogateescape"


class RequestHandler:
    """
    Dispatches requests to a KVStore.

    Usage:
        handler = RequestHandler(KVStore())
        response = handler.handle(Request("PUT", "/newkey", body=io.BytesIO(b"newvalue")))
        assert response.status == 201

    Attributes:
        store: The KVStore all requests operate on
        parser: HTTPParser used for key extraction
    """

    def __init__(self, store: KVStore, parser: HTTPParser = None):
        self.store = store
        self.parser = parser if parser is not None else HTTPParser()

        self._outcomes: Counter = Counter()
        self._stats_lock = threading.Lock()

    def handle(self, request: Request) -> Response:
        """
        Handle a single request.

        Args:
            request: The request to handle

        Returns:
            The Response to send back. Never raises.
        """
        try:
            response = self._dispatch(request)
        except ProtocolError as exc:
            logger.debug(f"{request.method} {request.target} rejected: {exc.outcome.name} {exc.message}")
            response = Response.from_error(exc)
        except Exception as exc:
            logger.exception(f"Unexpected error handling {request.method} {request.target}: {exc}")
            response = Response.internal_error(str(exc))

        with self._stats_lock:
            self._outcomes[response.outcome] += 1
        return response

    def _dispatch(self, request: Request) -> Response:
        operation = request.operation

        if operation is OperationType.UNSUPPORTED:
            raise UnsupportedOperation(f"method {request.method} not allowed")

        key = self.parser.extract_key(request.target)

        if operation is OperationType.READ:
            return self.handle_read(key)
        if operation is OperationType.WRITE:
            return self.handle_write(key, request)
        return self.handle_delete(key)

    def handle_read(self, key: str) -> Response:
        """Look up a key: 200 with the value, or 404 with an empty body."""
        result = self.store.get(key)
        if isinstance(result, NotFound):
            logger.debug(f"GET {key!r}: not found")
            return Response.not_found()

        try:
            body = result.value.encode(VALUE_ENCODING, VALUE_ERRORS)
        except UnicodeError as exc:
            raise InternalFault(str(exc)) from exc
        return Response.ok(body)

    def handle_write(self, key: str, request: Request) -> Response:
        """
        Store the request payload under a key: 201 with an empty body.

        The payload is read in full before the store is touched; a failure
        while reading it is an internal fault and leaves the store unchanged.
        """
        try:
            payload = request.read_body()
        except (OSError, ValueError) as exc:
            raise InternalFault(str(exc)) from exc

        value = payload.decode(VALUE_ENCODING, VALUE_ERRORS)
        self.store.put(key, value)
        logger.debug(f"PUT {key!r}: stored {len(payload)} bytes")
        return Response.created()

    def handle_delete(self, key: str) -> Response:
        """Remove a key: 200 with an empty body whether or not it existed."""
        self.store.delete(key)
        logger.debug(f"DELETE {key!r}")
        return Response.ok()

    def get_stats(self) -> Dict[str, int]:
        """Get the number of responses sent, per outcome name."""
        with self._stats_lock:
            return {outcome.name: self._outcomes[outcome] for outcome in Outcome}
