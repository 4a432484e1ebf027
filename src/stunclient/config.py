from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_INITIAL_TIMEOUT_MS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_TIMEOUT_MS,
    DEFAULT_RECV_BUFSIZE,
    DEFAULT_SOFTWARE,
)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Knobs for one client; passed explicitly, never read from globals.

    ``trace`` hex-dumps every request sent and reply matched.
    ``strict_replies`` makes an unparseable datagram abort the exchange
    instead of being discarded like unrelated traffic.
    """

    trace: bool = False
    strict_replies: bool = False
    initial_timeout_ms: int = DEFAULT_INITIAL_TIMEOUT_MS
    max_timeout_ms: int = DEFAULT_MAX_TIMEOUT_MS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    recv_bufsize: int = DEFAULT_RECV_BUFSIZE
    software: Optional[str] = DEFAULT_SOFTWARE
    fingerprint: bool = True

    def __post_init__(self) -> None:
        if self.initial_timeout_ms <= 0:
            raise ValueError(f"initial_timeout_ms must be positive: {self.initial_timeout_ms}")
        if self.max_timeout_ms < self.initial_timeout_ms:
            raise ValueError("max_timeout_ms must be >= initial_timeout_ms")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1: {self.max_attempts}")
