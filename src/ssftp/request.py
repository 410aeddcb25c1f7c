from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO

from .constants import MAX_REQUEST_LINE, NEWLINE, PARENT_DIR, ROOT


class BadRequestError(ValueError):
    pass


class Method(enum.Enum):
    GET = "GET"
    INFO = "INFO"
    DIR = "DIR"


@dataclass(frozen=True, slots=True)
class Request:
    method: Method
    path: str

    def to_bytes(self) -> bytes:
        return f"{self.method.value} {self.path}".encode("utf-8") + NEWLINE


def sanitize_request_path(path: str) -> bool:
    """True if `path` is rooted and never climbs above the root.

    Pure string check, the filesystem is not consulted.
    """
    if not path.startswith(ROOT) or "\x00" in path:
        return False
    return all(part != PARENT_DIR for part in PurePosixPath(path).parts)


def parse_request(raw: bytes) -> Request:
    line = raw.decode("utf-8", errors="replace")
    method, sep, path = line.partition(" ")
    if not sep:
        raise BadRequestError("request line has no path")
    try:
        return Request(Method(method.upper()), path)
    except ValueError:
        raise BadRequestError(f"bad method: {method!r}") from None


def read_request(rfile: BinaryIO) -> Request:
    """Consume exactly one request line from `rfile` and parse it."""
    try:
        raw = rfile.readline(MAX_REQUEST_LINE + 1)
    except OSError as e:
        raise BadRequestError(f"read error: {e}") from e

    if not raw:
        raise BadRequestError("connection closed before request line")
    if raw.endswith(NEWLINE):
        raw = raw[:-1]
    elif len(raw) > MAX_REQUEST_LINE:
        raise BadRequestError("request line too long")
    return parse_request(raw)
