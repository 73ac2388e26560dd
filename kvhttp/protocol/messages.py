"""
Request and Response Definitions

This module defines the data structures passed between the transport and the
request handler. They are independent of sockets: a Request can be built by
hand in a test, and a Response is rendered to bytes by the parser.
"""

import io
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import BinaryIO, Dict

from ..config.settings import settings


class OperationType(Enum):
    """Enumeration of store operations a request can ask for."""
    READ = auto()
    WRITE = auto()
    DELETE = auto()
    UNSUPPORTED = auto()

    @classmethod
    def from_method(cls, method: str) -> "OperationType":
        """Map an HTTP method to an operation. Methods are case-sensitive."""
        return _METHODS.get(method, cls.UNSUPPORTED)


_METHODS = {
    "GET": OperationType.READ,
    "PUT": OperationType.WRITE,
    "DELETE": OperationType.DELETE,
}


class Outcome(Enum):
    """Categorical result of handling a request, with its HTTP status."""
    OK = (200, "OK")
    CREATED = (201, "Created")
    BAD_REQUEST = (400, "Bad Request")
    NOT_FOUND = (404, "Not Found")
    METHOD_NOT_ALLOWED = (405, "Method Not Allowed")
    PAYLOAD_TOO_LARGE = (413, "Payload Too Large")
    INTERNAL_ERROR = (500, "Internal Server Error")

    @property
    def status(self) -> int:
        return self.value[0]

    @property
    def reason(self) -> str:
        return self.value[1]


@dataclass
class Request:
    """
    Represents one inbound request.

    Attributes:
        method: HTTP method exactly as received (e.g. "GET")
        target: Request target, e.g. "/mykey" or "/mykey?x=1"
        headers: Header names lower-cased, mapped to their values
        body: Binary stream holding the payload (empty when there is none)
        version: HTTP version string from the request line
    """
    method: str
    target: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: BinaryIO = field(default_factory=io.BytesIO)
    version: str = "HTTP/1.1"

    @property
    def operation(self) -> OperationType:
        return OperationType.from_method(self.method)

    def read_body(self) -> bytes:
        """Read the whole payload."""
        return self.body.read()


@dataclass
class Response:
    """
    Represents a response to send back to the client.

    Attributes:
        outcome: The outcome category (carries the status code)
        body: Raw response body
        content_type: Media type label for the body
    """
    outcome: Outcome
    body: bytes = b""
    content_type: str = settings.CONTENT_TYPE

    @property
    def status(self) -> int:
        return self.outcome.status

    @classmethod
    def ok(cls, body: bytes = b"") -> "Response":
        """Create a 200 response, with the value for reads."""
        return cls(outcome=Outcome.OK, body=body)

    @classmethod
    def created(cls) -> "Response":
        """Create a 201 response for a stored value."""
        return cls(outcome=Outcome.CREATED)

    @classmethod
    def not_found(cls) -> "Response":
        """Create a 404 response. The body is always empty."""
        return cls(outcome=Outcome.NOT_FOUND)

    @classmethod
    def method_not_allowed(cls) -> "Response":
        """Create a 405 response."""
        return cls(outcome=Outcome.METHOD_NOT_ALLOWED)

    @classmethod
    def bad_request(cls, message: str) -> "Response":
        """Create a 400 response carrying the failure description."""
        return cls(outcome=Outcome.BAD_REQUEST, body=message.encode("utf-8", "replace"))

    @classmethod
    def payload_too_large(cls, message: str) -> "Response":
        """Create a 413 response carrying the failure description."""
        return cls(outcome=Outcome.PAYLOAD_TOO_LARGE, body=message.encode("utf-8", "replace"))

    @classmethod
    def internal_error(cls, message: str) -> "Response":
        """Create a 500 response carrying the failure description."""
        return cls(outcome=Outcome.INTERNAL_ERROR, body=message.encode("utf-8", "replace"))

    @classmethod
    def from_error(cls, error) -> "Response":
        """Create the response for a ProtocolError."""
        if error.outcome is Outcome.METHOD_NOT_ALLOWED:
            return cls.method_not_allowed()
        return cls(outcome=error.outcome, body=error.message.encode("utf-8", "replace"))
