from __future__ import annotations

import ipaddress
import socket
import struct
import threading
from collections import deque
from typing import Callable, List, Optional, Tuple

import pytest

from stunclient.attribute import Attribute
from stunclient.constants import ATTR_MAPPED_ADDRESS
from stunclient.host import Host
from stunclient.packet import Packet

SERVER = ("198.51.100.1", 3478)


def address_value(host: Host, transaction_id: Optional[bytes] = None) -> bytes:
    """Encode ``host`` as an address attribute value, XORed when given an id."""
    port = host.port
    ip = ipaddress.IPv4Address(host.ip).packed
    if transaction_id is not None:
        port ^= struct.unpack_from("!H", transaction_id)[0]
        ip = bytes(a ^ b for a, b in zip(ip, transaction_id[:4]))
    return struct.pack("!BBH4s", 0, 1, port, ip)


class FakeUdp:
    """In-memory datagram transport.

    ``responder`` sees every datagram sent and returns what the next reads
    should yield: ``(bytes, addr)`` pairs or exceptions to raise. Reading
    with nothing queued behaves like an expired deadline.
    """

    def __init__(self, responder: Optional[Callable[[bytes, Tuple[str, int]], list]] = None):
        self.responder = responder
        self.sent: List[bytes] = []
        self.deadlines: List[Optional[float]] = []
        self.inbox: deque = deque()
        self.short_by = 0

    def sendto(self, data: bytes, addr: Tuple[str, int]) -> int:
        self.sent.append(data)
        if self.responder is not None:
            self.inbox.extend(self.responder(data, addr))
        return len(data) - self.short_by

    def set_read_deadline(self, deadline: Optional[float]) -> None:
        self.deadlines.append(deadline)

    def recvfrom(self, bufsize: int):
        if not self.inbox:
            raise TimeoutError("read deadline exceeded")
        item = self.inbox.popleft()
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def fake_udp():
    return FakeUdp


@pytest.fixture
def server():
    return SERVER


class LoopbackStunServer:
    """Answers binding requests on 127.0.0.1 from a background thread."""

    def __init__(self, mapped, drop_first: int = 0, msg_type: int = 0x0101, extra=()):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(0.05)
        self.addr = self.sock.getsockname()
        self.mapped = mapped
        self.drop_first = drop_first
        self.msg_type = msg_type
        self.extra = list(extra)
        self.requests: List[Packet] = []
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                data, addr = self.sock.recvfrom(2048)
            except TimeoutError:
                continue
            except OSError:
                return
            req = Packet.from_bytes(data)
            self.requests.append(req)
            if len(self.requests) <= self.drop_first:
                continue
            resp = Packet(type=self.msg_type, transaction_id=req.transaction_id)
            resp.add_attribute(Attribute(ATTR_MAPPED_ADDRESS, address_value(self.mapped)))
            for a in self.extra:
                resp.add_attribute(a)
            self.sock.sendto(resp.to_bytes(), addr)

    def __enter__(self) -> "LoopbackStunServer":
        self._thread.start()
        return self

    def __exit__(self, *exc) -> None:
        self._stop.set()
        self._thread.join(timeout=5.0)
        self.sock.close()


@pytest.fixture
def loopback_server():
    return LoopbackStunServer
