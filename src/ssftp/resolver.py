from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .request import Method, Request, sanitize_request_path
from .response import (
    BadRequestResponse,
    DirResponse,
    ErrorResponse,
    GetResponse,
    InfoResponse,
    PendingResponse,
)
from .status import StatusCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ServerConfig:
    serve_dir: Path
    timeout_s: float | None = None

    @classmethod
    def for_directory(cls, serve_dir: str | os.PathLike, timeout_s: float | None = None) -> "ServerConfig":
        return cls(Path(serve_dir).resolve(), timeout_s)


def resolve_request_path(config: ServerConfig, path: str) -> Path:
    """Map a sanitized virtual path onto the served root. No existence check."""
    parts = PurePosixPath(path).parts[1:]
    return config.serve_dir.joinpath(*parts)


def _within_root(config: ServerConfig, fs_path: Path) -> bool:
    return fs_path.resolve().is_relative_to(config.serve_dir)


def prepare_response(config: ServerConfig, request: Request) -> PendingResponse:
    if not sanitize_request_path(request.path):
        logger.info("Rejected request path %r", request.path)
        return BadRequestResponse()

    fs_path = resolve_request_path(config, request.path)
    if not os.path.exists(fs_path) or not _within_root(config, fs_path):
        logger.info("%s does not exist", request.path)
        return ErrorResponse(StatusCode.NOT_EXIST)

    if request.method is Method.GET:
        return _prepare_get(fs_path)
    if request.method is Method.INFO:
        return _prepare_info(fs_path)
    return _prepare_dir(fs_path)


def _server_error(fs_path: Path, err: OSError) -> ErrorResponse:
    logger.warning("Cannot serve %s: %s", fs_path, err)
    return ErrorResponse(StatusCode.SERVER_ERROR)


def _prepare_get(fs_path: Path) -> PendingResponse:
    try:
        if not stat.S_ISREG(fs_path.stat().st_mode):
            return ErrorResponse(StatusCode.NOT_FILE)
        f = open(fs_path, "rb")
    except OSError as e:
        return _server_error(fs_path, e)

    # the entry may have been swapped between stat and open
    try:
        is_file = stat.S_ISREG(os.fstat(f.fileno()).st_mode)
    except OSError as e:
        f.close()
        return _server_error(fs_path, e)
    if not is_file:
        f.close()
        return ErrorResponse(StatusCode.NOT_FILE)
    return GetResponse(f)


def _prepare_info(fs_path: Path) -> PendingResponse:
    try:
        return InfoResponse(fs_path.stat())
    except OSError as e:
        return _server_error(fs_path, e)


def _prepare_dir(fs_path: Path) -> PendingResponse:
    try:
        if not stat.S_ISDIR(fs_path.stat().st_mode):
            return ErrorResponse(StatusCode.NOT_DIRECTORY)
        return DirResponse(os.scandir(fs_path))
    except OSError as e:
        return _server_error(fs_path, e)
