from __future__ import annotations

import json
from dataclasses import dataclass
from typing import BinaryIO

from .net import Address, connect
from .request import Method, Request, sanitize_request_path
from .status import StatusCode


class ProtocolError(ValueError):
    pass


@dataclass(slots=True)
class Response:
    status_code: StatusCode
    headers: dict
    payload_stream: BinaryIO

    @property
    def ok(self) -> bool:
        return self.status_code is StatusCode.OK

    @property
    def content_length(self) -> int | None:
        value = self.headers.get("content-length")
        return value if isinstance(value, int) else None

    def read_payload(self) -> bytes:
        """Read the whole payload, honoring `content-length` when present."""
        length = self.content_length
        if length is None:
            return self.payload_stream.read()
        data = self.payload_stream.read(length)
        if len(data) != length:
            raise ProtocolError(f"payload truncated: expected {length} bytes, got {len(data)}")
        return data

    def close(self) -> None:
        self.payload_stream.close()

    def __enter__(self) -> "Response":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def read_status_code(stream: BinaryIO) -> StatusCode:
    line = stream.readline()
    if not line:
        raise ProtocolError("connection closed before status line")
    try:
        return StatusCode.from_token(line)
    except ValueError as e:
        raise ProtocolError(str(e)) from None


def read_headers(stream: BinaryIO) -> dict:
    """Must be called after the status line has been consumed."""
    line = stream.readline()
    if not line:
        raise ProtocolError("connection closed before header line")
    try:
        headers = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"malformed header line: {e}") from None
    if not isinstance(headers, dict):
        raise ProtocolError("header line is not a JSON object")
    return headers


class SSFTPClient:
    def __init__(self, host: str, port: int, timeout_s: float | None = None):
        self.server_addr: Address = (host, port)
        self.timeout_s = timeout_s

    def _general_request(self, request: Request) -> Response:
        if not sanitize_request_path(request.path):
            raise ValueError(f"bad request path: {request.path!r}")
        if "\n" in request.path:
            raise ValueError("request path must not contain a newline")

        sock = connect(self.server_addr, self.timeout_s)
        with sock:
            sock.sendall(request.to_bytes())
            stream = sock.makefile("rb")
        # the stream keeps the connection open after the socket object is closed
        try:
            status_code = read_status_code(stream)
            headers = read_headers(stream)
        except BaseException:
            stream.close()
            raise
        return Response(status_code, headers, stream)

    def get(self, path: str) -> Response:
        return self._general_request(Request(Method.GET, path))

    def info(self, path: str) -> Response:
        return self._general_request(Request(Method.INFO, path))

    def dir(self, path: str) -> Response:
        return self._general_request(Request(Method.DIR, path))
