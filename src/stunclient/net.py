from __future__ import annotations

import logging
import random
import socket
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Address = Tuple[str, int]


class DatagramTransport(Protocol):
    def sendto(self, data: bytes, addr: Address) -> int: ...

    def recvfrom(self, bufsize: int) -> Tuple[bytes, Address]: ...

    def set_read_deadline(self, deadline: Optional[float]) -> None: ...


@dataclass(frozen=True, slots=True)
class Impairment:
    loss_rate: float = 0.0
    delay_ms: int = 0

    def should_drop(self) -> bool:
        return random.random() < self.loss_rate

    def sleep_if_needed(self) -> None:
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)


class UdpEndpoint:
    """A UDP socket with Go-style read deadlines.

    The deadline is an instant on the ``time.monotonic()`` clock. Every
    ``recvfrom`` waits only for what is left of it, so repeated reads share
    one deadline; once it has passed, ``recvfrom`` raises ``TimeoutError``.
    """

    def __init__(self, sock: socket.socket, impairment: Impairment | None = None):
        self.sock = sock
        self.impairment = impairment or Impairment()
        self._deadline: Optional[float] = None

    @classmethod
    def bound(
        cls,
        host: str = "0.0.0.0",
        port: int = 0,
        impairment: Impairment | None = None,
    ) -> "UdpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind((host, port))
        return cls(sock, impairment)

    @property
    def local_addr(self) -> Address:
        return self.sock.getsockname()

    def set_read_deadline(self, deadline: Optional[float]) -> None:
        self._deadline = deadline

    def sendto(self, data: bytes, addr: Address) -> int:
        if self.impairment.should_drop():
            logger.debug("dropped outbound %d bytes to %s:%d", len(data), *addr)
            return len(data)
        self.impairment.sleep_if_needed()
        return self.sock.sendto(data, addr)

    def recvfrom(self, bufsize: int = 65535) -> Tuple[bytes, Address]:
        while True:
            if self._deadline is None:
                self.sock.settimeout(None)
            else:
                remaining = self._deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("read deadline exceeded")
                self.sock.settimeout(remaining)
            data, addr = self.sock.recvfrom(bufsize)
            if self.impairment.should_drop():
                logger.debug("dropped inbound %d bytes from %s:%d", len(data), *addr)
                continue
            self.impairment.sleep_if_needed()
            return data, addr

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "UdpEndpoint":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
