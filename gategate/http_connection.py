"""One short-lived HTTP exchange: read a request, route it, answer, close."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from http import HTTPStatus

from gategate.logic import LogicSystem
from gategate.urlcodec import parse_target

logger = logging.getLogger(__name__)

MAX_HEADER_BYTES = 8192
DEADLINE_SECONDS = 60.0
SERVER_NAME = "GateServer"
NOT_FOUND_BODY = b"url not found!\r\n"
_SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")
_HEX = b"0123456789abcdefABCDEF"


@dataclass
class HttpRequest:
    """A parsed request; header names are lower case."""

    method: str
    target: str
    version: str = "HTTP/1.1"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class HttpResponse:
    """A response under construction; handlers append to ``body``."""

    status: HTTPStatus = HTTPStatus.OK
    version: str = "HTTP/1.1"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytearray = field(default_factory=bytearray)
    keep_alive: bool = False

    def to_bytes(self) -> bytes:
        """Serialise the response, filling in Content-Length and Connection."""
        headers = {
            name: value
            for name, value in self.headers.items()
            if name.lower() not in ("content-length", "connection")
        }
        headers["Content-Length"] = str(len(self.body))
        if self.version == "HTTP/1.1" and not self.keep_alive:
            headers["Connection"] = "close"
        elif self.version == "HTTP/1.0" and self.keep_alive:
            headers["Connection"] = "keep-alive"
        head = f"{self.version} {self.status.value} {self.status.phrase}\r\n"
        head += "".join(f"{name}: {value}\r\n" for name, value in headers.items())
        head += "\r\n"
        return head.encode("latin-1") + bytes(self.body)


async def read_request(reader: asyncio.StreamReader) -> HttpRequest:
    """Read one request from ``reader``.

    Raises EOFError when the stream ends early and ValueError when the
    request is malformed or its header exceeds MAX_HEADER_BYTES.
    """
    consumed = 0

    async def next_line() -> bytes:
        nonlocal consumed
        line = await reader.readline()
        consumed += len(line)
        if consumed > MAX_HEADER_BYTES:
            raise ValueError(f"request header exceeds {MAX_HEADER_BYTES} bytes")
        return line

    line = await next_line()
    if not line:
        raise EOFError("connection closed before a request arrived")
    if not line.endswith(b"\n"):
        raise EOFError("connection closed inside the request line")
    parts = line.decode("latin-1").rstrip("\r\n").split(" ")
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"malformed request line {line!r}")
    method, target, version = parts
    if version not in _SUPPORTED_VERSIONS:
        raise ValueError(f"unsupported HTTP version {version!r}")

    headers: dict[str, str] = {}
    while True:
        line = await next_line()
        if not line.endswith(b"\n"):
            raise EOFError("connection closed inside the request header")
        text = line.decode("latin-1").rstrip("\r\n")
        if not text:
            break
        name, sep, value = text.partition(":")
        if not sep or not name or name != name.strip():
            raise ValueError(f"malformed header line {text!r}")
        key = name.lower()
        value = value.strip()
        headers[key] = f"{headers[key]}, {value}" if key in headers else value

    body = await _read_body(reader, headers)
    return HttpRequest(method, target, version, headers, body)


async def _read_body(reader: asyncio.StreamReader, headers: dict[str, str]) -> bytes:
    if "chunked" in headers.get("transfer-encoding", "").lower():
        return await _read_chunked(reader)
    length = headers.get("content-length")
    if length is None:
        return b""
    if not length.isdigit():
        raise ValueError(f"invalid Content-Length {length!r}")
    return await reader.readexactly(int(length))


async def _read_chunked(reader: asyncio.StreamReader) -> bytes:
    body = bytearray()
    while True:
        size_line = await reader.readline()
        if not size_line.endswith(b"\n"):
            raise EOFError("connection closed inside a chunk header")
        size_text = size_line.split(b";", 1)[0].strip()
        if not size_text or any(c not in _HEX for c in size_text):
            raise ValueError(f"invalid chunk size {size_text!r}")
        size = int(size_text, 16)
        if size == 0:
            break
        body += await reader.readexactly(size)
        if (await reader.readline()).strip():
            raise ValueError("chunk data not followed by CRLF")
    while True:
        trailer = await reader.readline()
        if not trailer.endswith(b"\n"):
            raise EOFError("connection closed inside the chunk trailer")
        if not trailer.strip():
            return bytes(body)


class HttpConnection:
    """Serves exactly one request on a stream pair, then closes it.

    Handlers see ``request``, ``response``, and for GET requests the
    path ``url`` and decoded query ``params``.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        logic: LogicSystem,
        timeout: float = DEADLINE_SECONDS,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._logic = logic
        self._timeout = timeout
        self.request: HttpRequest | None = None
        self.response = HttpResponse()
        self.url = ""
        self.params: dict[str, str] = {}

    def handle_request(self, request: HttpRequest) -> HttpResponse | None:
        """Route ``request`` and build the reply; None for methods other than GET and POST."""
        self.request = request
        response = self.response
        response.version = request.version
        response.keep_alive = False
        if request.method == "GET":
            self.url, self.params = parse_target(request.target)
            found = self._logic.handle_get(self.url, self)
        elif request.method == "POST":
            found = self._logic.handle_post(request.target, self)
        else:
            return None
        if found:
            response.status = HTTPStatus.OK
            response.headers["Server"] = SERVER_NAME
        else:
            response.status = HTTPStatus.NOT_FOUND
            response.headers["Content-Type"] = "text/plain"
            response.body.extend(NOT_FOUND_BODY)
        return response

    async def serve(self) -> None:
        """Read, handle and answer one request; the reply must go out before the deadline."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        try:
            try:
                request = await read_request(self._reader)
            except (EOFError, ValueError, OSError) as exc:
                logger.info("http read error is %s", exc)
                return
            try:
                response = self.handle_request(request)
            except Exception:
                logger.exception("error while handling %s %s", request.method, request.target)
                return
            if response is None:
                return
            try:
                await asyncio.wait_for(
                    self._send(response), max(0.0, deadline - loop.time())
                )
            except asyncio.TimeoutError:
                logger.info("deadline expired before the response was sent")
            except OSError as exc:
                logger.info("http write error is %s", exc)
        finally:
            self._writer.close()
            with contextlib.suppress(OSError):
                await self._writer.wait_closed()

    async def _send(self, response: HttpResponse) -> None:
        self._writer.write(response.to_bytes())
        await self._writer.drain()
        if self._writer.can_write_eof():
            self._writer.write_eof()