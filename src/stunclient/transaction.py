from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .config import ClientConfig
from .errors import FramingError, TransportReadError, TransportWriteError
from .net import Address, DatagramTransport
from .packet import Packet
from .trace import hexdump

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Metrics:
    attempts: int = 0
    timeouts: int = 0
    discarded: int = 0
    deadlines_ms: List[int] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Reply:
    source: Address
    packet: Packet
    attempts: int


@dataclass(slots=True)
class Transaction:
    """One request/response exchange over an unreliable datagram transport.

    RFC 3489: clients retransmit starting at 100ms, doubling every retransmit
    until the interval reaches 1.6s, and stop after 9 requests in total.
    ``run`` returns the first datagram whose transaction id equals the
    request's, or ``None`` once every attempt has timed out.
    """

    udp: DatagramTransport
    dest: Address
    config: ClientConfig = field(default_factory=ClientConfig)
    clock: Callable[[], float] = time.monotonic
    metrics: Metrics = field(default_factory=Metrics)

    def run(self, request: Packet) -> Optional[Reply]:
        cfg = self.config
        raw = request.to_bytes()
        if cfg.trace:
            logger.info("send %d bytes to %s:%d\n%s", len(raw), *self.dest, hexdump(raw))

        timeout_ms = cfg.initial_timeout_ms
        for attempt in range(1, cfg.max_attempts + 1):
            self.metrics.attempts = attempt
            self._send(raw)

            self.udp.set_read_deadline(self.clock() + timeout_ms / 1000.0)
            self.metrics.deadlines_ms.append(timeout_ms)
            timeout_ms = min(timeout_ms * 2, cfg.max_timeout_ms)

            reply = self._await_reply(request.transaction_id, attempt)
            if reply is not None:
                return reply
            logger.debug("attempt %d/%d to %s:%d timed out", attempt, cfg.max_attempts, *self.dest)

        logger.debug("no reply from %s:%d after %d attempts", *self.dest, cfg.max_attempts)
        return None

    def _send(self, raw: bytes) -> None:
        try:
            written = self.udp.sendto(raw, self.dest)
        except OSError as e:
            raise TransportWriteError(f"sendto {self.dest[0]}:{self.dest[1]} failed: {e}") from e
        if written != len(raw):
            raise TransportWriteError(f"short write: {written} of {len(raw)} bytes")

    def _await_reply(self, transaction_id: bytes, attempt: int) -> Optional[Reply]:
        cfg = self.config
        while True:
            try:
                data, addr = self.udp.recvfrom(cfg.recv_bufsize)
            except TimeoutError:
                self.metrics.timeouts += 1
                return None
            except OSError as e:
                raise TransportReadError(f"recvfrom failed: {e}") from e

            try:
                pkt = Packet.from_bytes(data)
            except FramingError:
                if cfg.strict_replies:
                    raise
                self.metrics.discarded += 1
                logger.debug("discarding malformed %d-byte datagram from %s:%d", len(data), *addr)
                continue

            if pkt.transaction_id != transaction_id:
                self.metrics.discarded += 1
                logger.debug("discarding reply with foreign transaction id from %s:%d", *addr)
                continue

            if cfg.trace:
                logger.info("recv %d bytes from %s:%d\n%s", len(data), *addr, hexdump(data))
            return Reply(source=addr, packet=pkt, attempts=attempt)
