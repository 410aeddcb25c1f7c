from __future__ import annotations

import socket
import threading

import pytest

from ssftp.client import SSFTPClient
from ssftp.server import SSFTPServer


@pytest.fixture
def serve_dir(tmp_path):
    root = tmp_path / "srv"
    root.mkdir()
    (root / "hello.txt").write_bytes(b"hi")
    sub = root / "sub"
    sub.mkdir()
    (sub / "a.txt").write_bytes(b"aaa")
    (sub / "b").mkdir()
    return root


@pytest.fixture
def server(serve_dir):
    srv = SSFTPServer(("127.0.0.1", 0), serve_dir, thread_count=4, timeout_s=10.0)
    t = threading.Thread(target=srv.serve_forever, daemon=True)
    t.start()
    yield srv
    srv.shutdown()
    t.join(timeout=5.0)


@pytest.fixture
def exchange():
    """Send a raw request line and read until the server closes."""

    def send(addr, line: bytes) -> bytes:
        with socket.create_connection(addr, timeout=10.0) as s:
            s.sendall(line)
            chunks = []
            while True:
                data = s.recv(4096)
                if not data:
                    break
                chunks.append(data)
        return b"".join(chunks)

    return send


@pytest.fixture
def canned_server():
    """One-shot server answering any request with a fixed reply."""

    def start(reply: bytes) -> SSFTPClient:
        listener = socket.create_server(("127.0.0.1", 0))

        def serve():
            with listener:
                conn, _ = listener.accept()
                with conn:
                    conn.makefile("rb").readline()
                    conn.sendall(reply)

        threading.Thread(target=serve, daemon=True).start()
        return SSFTPClient(*listener.getsockname()[:2], timeout_s=10.0)

    return start
