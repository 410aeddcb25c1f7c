from __future__ import annotations

import os
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .client import SSFTPClient
from .constants import DEFAULT_THREAD_COUNT
from .server import SSFTPServer


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    clients: int
    bytes_transferred: int
    duration_s: float
    throughput_mbps: float
    failures: int


def _fetch(client: SSFTPClient, name: str, expected: bytes) -> int:
    with client.get(f"/{name}") as response:
        if not response.ok:
            raise ValueError(f"{name}: {response.status_code}")
        data = response.read_payload()
    if data != expected:
        raise ValueError(f"{name}: payload mismatch")
    return len(data)


def run_benchmark(
    *,
    clients: int = 32,
    size_bytes: int = 1_000_000,
    thread_count: int = DEFAULT_THREAD_COUNT,
    timeout_s: float = 30.0,
) -> BenchmarkResult:
    """Fetch `clients` distinct files concurrently from a loopback server."""
    if clients < 1:
        raise ValueError(f"clients must be positive, got {clients}")
    with tempfile.TemporaryDirectory() as serve_dir:
        payloads = {}
        for i in range(clients):
            name = f"file-{i:04d}.bin"
            # distinct content per file so interleaving would be detected
            data = bytes([i % 251]) * size_bytes
            with open(os.path.join(serve_dir, name), "wb") as f:
                f.write(data)
            payloads[name] = data

        server = SSFTPServer(("127.0.0.1", 0), serve_dir, thread_count=thread_count, timeout_s=timeout_s)
        t = threading.Thread(target=server.serve_forever, daemon=True)
        t.start()
        try:
            client = SSFTPClient(*server.address, timeout_s=timeout_s)
            start = time.monotonic()
            with ThreadPoolExecutor(max_workers=clients) as executor:
                futures = [executor.submit(_fetch, client, name, data) for name, data in payloads.items()]
                received = []
                failures = 0
                for fut in futures:
                    try:
                        received.append(fut.result())
                    except (OSError, ValueError):
                        failures += 1
            duration_s = max(0.001, time.monotonic() - start)
        finally:
            server.shutdown()
        t.join(timeout=10.0)

    total = sum(received)
    return BenchmarkResult(
        clients=clients,
        bytes_transferred=total,
        duration_s=duration_s,
        throughput_mbps=(total * 8 / 1_000_000) / duration_s,
        failures=failures,
    )
