from __future__ import annotations

import enum


class StatusCode(enum.Enum):
    OK = "OK"
    NOT_EXIST = "NOT-EXIST"
    NOT_FILE = "NOT-FILE"
    NOT_DIRECTORY = "NOT-DIRECTORY"
    SERVER_ERROR = "SERVER-ERROR"
    BAD_REQUEST = "BAD-REQUEST"

    @property
    def token(self) -> str:
        return self.value

    def to_bytes(self) -> bytes:
        return self.value.encode("ascii")

    @staticmethod
    def from_token(raw: str | bytes) -> "StatusCode":
        if isinstance(raw, bytes):
            raw = raw.decode("ascii", errors="replace")
        token = raw.strip().upper()
        try:
            return StatusCode(token)
        except ValueError:
            raise ValueError(f"unknown status token: {token!r}") from None

    def __str__(self) -> str:
        return self.value
