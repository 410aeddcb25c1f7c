from __future__ import annotations

ROOT = "/"
PARENT_DIR = ".."
NEWLINE = b"\n"
EMPTY_HEADERS = b"{}"

MAX_REQUEST_LINE = 64 * 1024
CHUNK_SIZE = 64 * 1024

DEFAULT_THREAD_COUNT = 8
LISTEN_BACKLOG = 128
POLL_INTERVAL = 0.5  # seconds between shutdown checks in the accept loop
DRAIN_LIMIT = 1024 * 1024  # unread request bytes discarded before closing a bad request
DRAIN_TIMEOUT = 1.0
