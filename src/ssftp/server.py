"""Threaded SSFTP server.

One accept loop hands every connection to a fixed-size worker pool. A worker
serves exactly one request and closes the connection.
"""
from __future__ import annotations

import io
import logging
import os
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import closing

from .constants import CHUNK_SIZE, DEFAULT_THREAD_COUNT, DRAIN_LIMIT, DRAIN_TIMEOUT, POLL_INTERVAL
from .net import Address, TcpListener, format_socket_addr
from .request import BadRequestError, read_request
from .resolver import ServerConfig, prepare_response
from .response import BadRequestResponse, PendingResponse, perform_response

logger = logging.getLogger(__name__)


def drain(conn: socket.socket, rfile: io.BufferedReader) -> None:
    """Discard unread request bytes so that closing does not reset the connection."""
    try:
        conn.shutdown(socket.SHUT_WR)
        conn.settimeout(DRAIN_TIMEOUT)
        drained = 0
        while drained < DRAIN_LIMIT:
            chunk = rfile.read1(CHUNK_SIZE)
            if not chunk:
                break
            drained += len(chunk)
    except OSError as e:
        logger.debug("Drain stopped early: %s", e)


def handle_client(config: ServerConfig, conn: socket.socket) -> None:
    """Serve one request on `conn`. Transport errors propagate."""
    if config.timeout_s is not None:
        conn.settimeout(config.timeout_s)

    with conn, conn.makefile("rb") as rfile, conn.makefile("wb") as wfile:
        response: PendingResponse
        try:
            request = read_request(rfile)
        except BadRequestError as e:
            logger.info("Bad request: %s", e)
            response = BadRequestResponse()
        else:
            logger.debug("Raw request: %s %s", request.method.value, request.path)
            response = prepare_response(config, request)

        with closing(response):
            perform_response(wfile, response)
            wfile.flush()

        if isinstance(response, BadRequestResponse):
            drain(conn, rfile)


class SSFTPServer:
    def __init__(
        self,
        address: Address,
        serve_dir: str | os.PathLike,
        thread_count: int = DEFAULT_THREAD_COUNT,
        timeout_s: float | None = None,
    ):
        if thread_count < 1:
            raise ValueError(f"thread_count must be positive, got {thread_count}")
        self.config = ServerConfig.for_directory(serve_dir, timeout_s)
        self.thread_count = thread_count
        self.listener = TcpListener.listening(address[0], address[1], poll_interval=POLL_INTERVAL)
        self.pool = ThreadPoolExecutor(max_workers=thread_count, thread_name_prefix="ssftp-worker")
        self._stop = threading.Event()
        self._stopped = threading.Event()
        self._stopped.set()
        self._address = self.listener.address

    @property
    def address(self) -> Address:
        return self._address

    def serve_forever(self) -> None:
        """Block and serve until `shutdown()` is called from another thread."""
        if self._stop.is_set():
            return
        logger.info(
            "Serving %s at %s with %d threads",
            self.config.serve_dir,
            format_socket_addr(self.address),
            self.thread_count,
        )
        self._stopped.clear()
        try:
            while not self._stop.is_set():
                try:
                    conn, addr = self.listener.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._stop.is_set():
                        break
                    logger.error("Error occurred while accepting a connection: %s", e)
                    continue

                logger.info("Incoming connection from %s", format_socket_addr(addr))
                self.pool.submit(self._run_task, conn, addr)
        finally:
            self._stopped.set()

    def _run_task(self, conn: socket.socket, addr: tuple) -> None:
        try:
            handle_client(self.config, conn)
        except Exception as e:
            logger.error("Error occurred while handling %s: %s", format_socket_addr(addr), e)

    def shutdown(self, wait: bool = True) -> None:
        self._stop.set()
        if wait:
            self._stopped.wait(POLL_INTERVAL * 4)
        self.listener.close()
        self.pool.shutdown(wait=wait)

    def __enter__(self) -> "SSFTPServer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
