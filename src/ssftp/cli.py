from __future__ import annotations

import argparse
import json
import logging
import os
import shutil
from dataclasses import asdict

from .bench import run_benchmark
from .client import ProtocolError, Response, SSFTPClient
from .constants import DEFAULT_THREAD_COUNT
from .net import Address, format_socket_addr, parse_socket_addr
from .server import SSFTPServer

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def socket_addr(s: str) -> Address:
    try:
        return parse_socket_addr(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def positive_int(s: str) -> int:
    n = int(s)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {s}")
    return n


def add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--log-level", default="INFO", choices=LOG_LEVELS)


def setup_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level), format="%(asctime)s [%(levelname)s] %(message)s")


def server_main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="ssftp-server", description="Run the SSFTP server.")
    add_common(p)
    p.add_argument("host", type=socket_addr, metavar="ip:port", help="IP address and port to bind on")
    p.add_argument("serve_dir", metavar="path", help="path of serving directory")
    p.add_argument("--thread", type=positive_int, default=DEFAULT_THREAD_COUNT, metavar="thread-count",
                   help="number of worker threads")
    p.add_argument("--timeout", type=float, default=None, help="per-connection I/O timeout in seconds")
    args = p.parse_args(argv)

    if not os.path.isdir(args.serve_dir):
        p.error(f"not a directory: {args.serve_dir}")
    setup_logging(args.log_level)

    server = SSFTPServer(args.host, args.serve_dir, thread_count=args.thread, timeout_s=args.timeout)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
        server.shutdown(wait=False)
    return 0


def report_not_ok(response: Response) -> None:
    print(f"Response status code is not OK: {response.status_code}")


def cmd_get(client: SSFTPClient, args: argparse.Namespace) -> int:
    with client.get(args.remote_path) as response:
        if not response.ok:
            report_not_ok(response)
            return 0
        with open(args.local_path, "wb") as out:
            if response.content_length is None:
                shutil.copyfileobj(response.payload_stream, out)
            else:
                out.write(response.read_payload())
            written = out.tell()
    print(f"The file with {written} bytes successfully downloaded to {args.local_path}")
    return 0


def cmd_dir(client: SSFTPClient, args: argparse.Namespace) -> int:
    with client.dir(args.remote_path) as response:
        if not response.ok:
            report_not_ok(response)
            return 0
        payload = response.read_payload().decode("utf-8", errors="replace")
    for line in payload.splitlines():
        print(line)
    return 0


def cmd_info(client: SSFTPClient, args: argparse.Namespace) -> int:
    with client.info(args.remote_path) as response:
        if not response.ok:
            report_not_ok(response)
            return 0
        kind = response.headers.get("type")
        length = response.content_length

    if kind == "file" and length is not None:
        print(f"INFO: {args.remote_path} is a file with {length} bytes")
    elif kind == "directory":
        print(f"INFO: {args.remote_path} is a directory")
    else:
        print("Malformed info response")
    return 0


def client_main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="ssftp-client",
                                description="Client implementing the Super Simple File Transfer Protocol.")
    add_common(p)
    p.add_argument("host", type=socket_addr, metavar="ip:port", help="ip and port of server host")
    p.add_argument("--timeout", type=float, default=None, help="connection I/O timeout in seconds")
    sub = p.add_subparsers(dest="cmd", required=True)

    get = sub.add_parser("get", help="send a GET request")
    get.add_argument("remote_path", metavar="remote-path", help="requested file path on server")
    get.add_argument("local_path", metavar="local-path", help="path to save the file on local machine")
    get.set_defaults(func=cmd_get)

    dir_ = sub.add_parser("dir", help="send a DIR request")
    dir_.add_argument("remote_path", metavar="remote-path", help="requested directory path on server")
    dir_.set_defaults(func=cmd_dir)

    info = sub.add_parser("info", help="send an INFO request")
    info.add_argument("remote_path", metavar="remote-path", help="requested path on server")
    info.set_defaults(func=cmd_info)

    args = p.parse_args(argv)
    setup_logging(args.log_level)

    client = SSFTPClient(*args.host, timeout_s=args.timeout)
    try:
        return int(args.func(client, args))
    except ProtocolError as e:
        logger.error("Protocol error: %s", e)
    except ValueError as e:
        logger.error("%s", e)
    except OSError as e:
        logger.error("Request to %s failed: %s", format_socket_addr(args.host), e)
    return 1


def bench_main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="ssftp-bench", description="Concurrent GET benchmark on loopback.")
    add_common(p)
    p.add_argument("--clients", type=positive_int, default=32)
    p.add_argument("--size-bytes", type=int, default=1_000_000)
    p.add_argument("--thread", type=positive_int, default=DEFAULT_THREAD_COUNT)
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)
    setup_logging(args.log_level)

    r = run_benchmark(clients=args.clients, size_bytes=args.size_bytes, thread_count=args.thread)
    payload = {"role": "bench", **asdict(r)}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0 if r.failures == 0 else 1

