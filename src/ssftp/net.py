from __future__ import annotations

import ipaddress
import socket
from typing import Tuple

from .constants import LISTEN_BACKLOG

Address = Tuple[str, int]


def parse_socket_addr(s: str) -> Address:
    """Parse `ip:port` (or `[ipv6]:port`) into a host/port pair."""
    host, sep, port_str = s.rpartition(":")
    if not sep or not host:
        raise ValueError(f"expected ip:port, got {s!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        ip = ipaddress.ip_address(host)
        port = int(port_str)
    except ValueError:
        raise ValueError(f"invalid format of IP address: {s!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return str(ip), port


def format_socket_addr(addr: tuple) -> str:
    host, port = addr[0], addr[1]
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"


def _family(host: str) -> socket.AddressFamily:
    return socket.AF_INET6 if ipaddress.ip_address(host).version == 6 else socket.AF_INET


class TcpListener:
    def __init__(self, sock: socket.socket):
        self.sock = sock

    @classmethod
    def listening(
        cls,
        host: str,
        port: int,
        poll_interval: float = 0.0,
        backlog: int = LISTEN_BACKLOG,
    ) -> "TcpListener":
        sock = socket.socket(_family(host), socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(backlog)
        except OSError:
            sock.close()
            raise
        if poll_interval > 0:
            sock.settimeout(poll_interval)
        return cls(sock)

    @property
    def address(self) -> Address:
        host, port = self.sock.getsockname()[:2]
        return host, port

    def accept(self) -> Tuple[socket.socket, tuple]:
        conn, addr = self.sock.accept()
        # accepted sockets must not inherit the poll timeout
        conn.settimeout(None)
        return conn, addr

    def close(self) -> None:
        self.sock.close()


def connect(addr: Address, timeout_s: float | None = None) -> socket.socket:
    return socket.create_connection(addr, timeout=timeout_s)
