from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, Protocol, Union

from .constants import CHUNK_SIZE, EMPTY_HEADERS, NEWLINE
from .status import StatusCode

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GetResponse:
    file: BinaryIO

    def close(self) -> None:
        self.file.close()


@dataclass(slots=True)
class InfoResponse:
    metadata: os.stat_result

    def close(self) -> None:
        pass


class DirScan(Protocol):
    """What `os.scandir` returns: an entry iterator that holds a directory handle."""

    def __iter__(self) -> Iterator[os.DirEntry]: ...

    def __next__(self) -> os.DirEntry: ...

    def close(self) -> None: ...


@dataclass(slots=True)
class DirResponse:
    entries: DirScan

    def close(self) -> None:
        self.entries.close()


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    status: StatusCode

    def close(self) -> None:
        pass


@dataclass(frozen=True, slots=True)
class BadRequestResponse:
    def close(self) -> None:
        pass


PendingResponse = Union[GetResponse, InfoResponse, DirResponse, ErrorResponse, BadRequestResponse]


def encode_headers(headers: dict) -> bytes:
    return json.dumps(headers, separators=(",", ":")).encode("utf-8")


def write_preamble(out: BinaryIO, status: StatusCode, headers: bytes) -> None:
    out.write(status.to_bytes() + NEWLINE)
    out.write(headers + NEWLINE)


def perform_response(out: BinaryIO, response: PendingResponse) -> None:
    """Serialize `response` onto `out`.

    Does not close the response; the caller owns its resources.
    """
    if isinstance(response, GetResponse):
        perform_get_response(out, response.file)
    elif isinstance(response, InfoResponse):
        perform_info_response(out, response.metadata)
    elif isinstance(response, DirResponse):
        perform_dir_response(out, response.entries)
    elif isinstance(response, ErrorResponse):
        perform_error_response(out, response.status)
    elif isinstance(response, BadRequestResponse):
        perform_error_response(out, StatusCode.BAD_REQUEST)
    else:
        raise TypeError(f"not a pending response: {response!r}")


def perform_get_response(out: BinaryIO, f: BinaryIO) -> None:
    logger.info("Performing GET response")
    content_length = os.fstat(f.fileno()).st_size
    write_preamble(out, StatusCode.OK, encode_headers({"content-length": content_length}))

    remaining = content_length
    while remaining > 0:
        chunk = f.read(min(CHUNK_SIZE, remaining))
        if not chunk:
            raise OSError(f"file truncated during transfer; {remaining} bytes short")
        out.write(chunk)
        remaining -= len(chunk)


def perform_info_response(out: BinaryIO, metadata: os.stat_result) -> None:
    logger.info("Performing INFO response")
    if stat.S_ISDIR(metadata.st_mode):
        headers = {"type": "directory"}
    else:
        headers = {"type": "file", "content-length": metadata.st_size}
    write_preamble(out, StatusCode.OK, encode_headers(headers))


def list_entries(entries: Iterable[os.DirEntry]) -> list[str]:
    names = []
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            entry.name.encode("utf-8")
        except (OSError, UnicodeEncodeError):
            # vanished mid-listing or undecodable name
            continue
        names.append(entry.name + "/" if is_dir else entry.name)
    return names


def perform_dir_response(out: BinaryIO, entries: Iterable[os.DirEntry]) -> None:
    logger.info("Performing DIR response")
    names = list_entries(entries)
    payload = "\n".join(names).encode("utf-8")
    headers = {"content-length": len(payload), "count": len(names)}
    write_preamble(out, StatusCode.OK, encode_headers(headers))
    out.write(payload)


def perform_error_response(out: BinaryIO, status: StatusCode) -> None:
    logger.info("Performing %s response", status)
    write_preamble(out, status, EMPTY_HEADERS)
