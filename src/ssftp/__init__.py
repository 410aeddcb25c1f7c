"""Super Simple File Transfer Protocol (SSFTP)

A threaded TCP server exposing one directory tree read-only, and a client for it.
Each connection carries a single request line and a single response:

    <METHOD> <path>\\n
    <STATUS-TOKEN>\\n<json-header>\\n[payload]

The request pipeline is split into small, testable units:
parse (request) -> resolve (resolver) -> serialize (response).
"""

from .client import ProtocolError, Response, SSFTPClient
from .request import BadRequestError, Method, Request
from .resolver import ServerConfig
from .server import SSFTPServer
from .status import StatusCode

__version__ = "0.1.0"

__all__ = [
    "BadRequestError",
    "Method",
    "ProtocolError",
    "Request",
    "Response",
    "SSFTPClient",
    "SSFTPServer",
    "ServerConfig",
    "StatusCode",
]
