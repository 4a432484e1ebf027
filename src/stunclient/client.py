from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from . import attribute as attrs
from .config import ClientConfig
from .constants import BINDING_REQUEST
from .errors import StunResponseError, UnexpectedResponseError
from .host import Host
from .net import Address, DatagramTransport
from .packet import Packet
from .transaction import Metrics, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BindingResult:
    mapped: Optional[Host]
    source: Optional[Host]
    changed: Optional[Host]
    server: Address
    software: Optional[str]
    attempts: int


@dataclass(slots=True)
class StunClient:
    udp: DatagramTransport
    server: Address
    config: ClientConfig = field(default_factory=ClientConfig)
    last_metrics: Optional[Metrics] = None

    def binding_request(self, change_ip: bool = False, change_port: bool = False) -> Packet:
        pkt = Packet.new(BINDING_REQUEST)
        if self.config.software:
            pkt.add_attribute(attrs.software(self.config.software))
        if change_ip or change_port:
            pkt.add_attribute(attrs.change_request(change_ip, change_port))
        if self.config.fingerprint:
            pkt.add_fingerprint()
        return pkt

    def binding(self, change_ip: bool = False, change_port: bool = False) -> Optional[BindingResult]:
        """Ask the server which address our traffic arrives from.

        Returns ``None`` when the server never answered.
        """
        txn = Transaction(self.udp, self.server, self.config)
        self.last_metrics = txn.metrics
        reply = txn.run(self.binding_request(change_ip, change_port))
        if reply is None:
            return None

        pkt = reply.packet
        if pkt.is_error:
            code, reason = pkt.error_code() or (0, "")
            raise StunResponseError(code, reason)

        if not pkt.is_success:
            raise UnexpectedResponseError(f"reply has message type 0x{pkt.type:04x}, not a success response")

        mapped = pkt.xor_mapped_address() or pkt.mapped_address()
        if mapped is None:
            raise UnexpectedResponseError("success response carries no usable mapped address")
        logger.info("mapped address %s via %s:%d (attempts=%d)", mapped, *reply.source, reply.attempts)
        return BindingResult(
            mapped=mapped,
            source=pkt.source_address(),
            changed=pkt.changed_address(),
            server=reply.source,
            software=pkt.software(),
            attempts=reply.attempts,
        )
