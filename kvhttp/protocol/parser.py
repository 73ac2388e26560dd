"""
Protocol Parser Module

This module handles parsing of HTTP/1.1 request heads, extraction of the
key from a request target, and formatting of responses.

Protocol Format:
    Request:  <METHOD> /<key> HTTP/1.1\r\n
              <Header>: <value>\r\n
              ...
              \r\n
              [body]
    Response: HTTP/1.1 <status> <reason>\r\n
              Content-Type: application/json\r\n
              Content-Length: <n>\r\n
              Connection: keep-alive | close\r\n
              \r\n
              [body]

Operations:
    GET /<key>            -> 200 <value> | 404
    PUT /<key>  <body>    -> 201
    DELETE /<key>         -> 200
    anything else         -> 405
"""

from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import unquote, urlsplit

from .errors import MalformedRequest
from .messages import Response

HEAD_TERMINATOR = b"\r\n\r\n"

MISSING_KEY = "key param missing"


@dataclass
class RequestHead:
    """
    Request line and headers of an HTTP request.

    Attributes:
        method: HTTP method as sent by the client
        target: Request target (origin-form or absolute-form)
        version: HTTP version, e.g. "HTTP/1.1"
        headers: Header names lower-cased, mapped to their values
    """
    method: str
    target: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)


class HTTPParser:
    """
    Parser for the subset of HTTP/1.1 the server speaks.

    Constraints:
        - Header names are case-insensitive and stored lower-cased
        - Repeated headers are joined with ", "
        - Bodies are framed by Content-Length or chunked transfer coding;
          no framing means an empty body
    """

    def parse_head(self, data: bytes) -> RequestHead:
        """
        Parse a raw request head into a RequestHead.

        Args:
            data: Bytes up to and optionally including the blank line

        Returns:
            RequestHead with method, target, version and headers

        Raises:
            MalformedRequest: if the request line or a header is malformed

        Examples:
            >>> head = HTTPParser().parse_head(b"GET /mykey HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
            >>> head.method, head.target, head.headers["host"]
            ('GET', '/mykey', 'x')
        """
        # latin-1 maps every byte, so header values survive unchanged
        lines = data.decode("latin-1").split("\r\n")
        # Tolerate leading empty lines before the request line (RFC 9112 2.2)
        while lines and not lines[0]:
            lines.pop(0)
        if not lines:
            raise MalformedRequest("empty request")

        parts = lines[0].split(" ")
        if len(parts) != 3:
            raise MalformedRequest("malformed request line")

        method, target, version = parts
        if not method or not target or not version.startswith("HTTP/"):
            raise MalformedRequest("malformed request line")
        target = target.encode("latin-1").decode("utf-8", "surrogateescape")

        headers: Dict[str, str] = {}
        for line in lines[1:]:
            if not line:
                break
            name, sep, value = line.partition(":")
            if not sep or not name or name != name.strip():
                raise MalformedRequest(f"malformed header line: {line!r}")
            name = name.lower()
            value = value.strip()
            if name in headers:
                headers[name] = f"{headers[name]}, {value}"
            else:
                headers[name] = value

        return RequestHead(method=method, target=target, version=version, headers=headers)

    def extract_key(self, target: str) -> str:
        """
        Extract the key from a request target.

        The key is everything after the leading "/" of the path, with the
        query string removed and percent-escapes decoded. Slashes inside the
        key are kept, so "/a/b" addresses the key "a/b".

        Args:
            target: Request target, origin-form ("/key") or
                    absolute-form ("http://host/key")

        Returns:
            The key (never empty)

        Raises:
            MalformedRequest: if the target has no key component

        Examples:
            >>> HTTPParser().extract_key("/newkey")
            'newkey'
            >>> HTTPParser().extract_key("/")
            Traceback (most recent call last):
                ...
            kvhttp.protocol.errors.MalformedRequest: key param missing
        """
        if target.startswith("/"):
            path = target.partition("?")[0].partition("#")[0]
        elif "://" in target:
            path = urlsplit(target).path
        else:
            raise MalformedRequest(MISSING_KEY)

        if not path.startswith("/"):
            raise MalformedRequest(MISSING_KEY)

        key = unquote(path[1:], errors="surrogateescape")
        if not key:
            raise MalformedRequest(MISSING_KEY)
        return key

    def is_chunked(self, head: RequestHead) -> bool:
        """Check whether the body uses chunked transfer coding."""
        coding = head.headers.get("transfer-encoding", "")
        return coding.lower().split(",")[-1].strip() == "chunked"

    def body_length(self, head: RequestHead) -> int:
        """
        Get the declared body length.

        Returns:
            Content-Length as an int, 0 when the header is absent

        Raises:
            MalformedRequest: if Content-Length is not a non-negative integer
        """
        raw = head.headers.get("content-length")
        if raw is None:
            return 0
        if not (raw.isascii() and raw.isdigit()):
            raise MalformedRequest(f"invalid content-length: {raw!r}")
        return int(raw)

    def keep_alive(self, head: RequestHead) -> bool:
        """
        Decide whether the connection stays open after this request.

        HTTP/1.1 connections are persistent unless the client sends
        "Connection: close"; HTTP/1.0 ones close unless it sends keep-alive.
        """
        tokens = {t.strip().lower() for t in head.headers.get("connection", "").split(",")}
        if "close" in tokens:
            return False
        if head.version == "HTTP/1.0":
            return "keep-alive" in tokens
        return True

    def format_response(self, response: Response, keep_alive: bool = True) -> bytes:
        """
        Format a Response object into raw HTTP bytes.

        Args:
            response: Response object to format
            keep_alive: Whether to announce a persistent connection

        Returns:
            Status line, headers, blank line and body.

        Examples:
            >>> HTTPParser().format_response(Response.created(), keep_alive=False)
            b'HTTP/1.1 201 Created\\r\\nContent-Type: application/json\\r\\nContent-Length: 0\\r\\nConnection: close\\r\\n\\r\\n'
        """
        outcome = response.outcome
        head = (
            f"HTTP/1.1 {outcome.status} {outcome.reason}\r\n"
            f"Content-Type: {response.content_type}\r\n"
            f"Content-Length: {len(response.body)}\r\n"
            f"Connection: {'keep-alive' if keep_alive else 'close'}\r\n"
            "\r\n"
        )
        return head.encode("latin-1") + response.body
