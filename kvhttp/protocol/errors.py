"""
Protocol Errors

Failures raised while parsing or handling a request. Each error carries the
Outcome it maps to, so the handler and the connection loop can turn it into
a response without a lookup table.

A missing key on read is not an error: the store reports it as NOT_FOUND.
"""

from .messages import Outcome


class ProtocolError(Exception):
    """Base class for request failures that map to an error response."""

    outcome = Outcome.INTERNAL_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class MalformedRequest(ProtocolError):
    """The request could not be parsed, or its target names no key."""

    outcome = Outcome.BAD_REQUEST


class UnsupportedOperation(ProtocolError):
    """The request method is not one of GET, PUT or DELETE."""

    outcome = Outcome.METHOD_NOT_ALLOWED


class InternalFault(ProtocolError):
    """Reading the payload or producing the response body failed."""

    outcome = Outcome.INTERNAL_ERROR


class PayloadTooLarge(ProtocolError):
    """The declared or received body exceeds the configured limit."""

    outcome = Outcome.PAYLOAD_TOO_LARGE
