"""Protocol module for KV-HTTP."""

from .errors import (
    InternalFault,
    MalformedRequest,
    PayloadTooLarge,
    ProtocolError,
    UnsupportedOperation,
)
from .handler import RequestHandler
from .messages import OperationType, Outcome, Request, Response
from .parser import HTTPParser, RequestHead

__all__ = [
    "HTTPParser",
    "InternalFault",
    "MalformedRequest",
    "OperationType",
    "Outcome",
    "PayloadTooLarge",
    "ProtocolError",
    "Request",
    "RequestHandler",
    "RequestHead",
    "Response",
    "UnsupportedOperation",
]
