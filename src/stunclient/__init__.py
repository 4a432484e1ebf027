"""STUN client (RFC 3489 / RFC 5389)

- binary message framing with TLV attributes, kept separate from the
  retransmission state machine
- XOR-MAPPED-ADDRESS decoding against the magic-cookie transaction id
- one blocking request/response exchange with the RFC 3489 backoff schedule
"""

from .client import BindingResult, StunClient
from .config import ClientConfig
from .errors import (
    FramingError,
    StunError,
    StunResponseError,
    TransportReadError,
    TransportWriteError,
    UnexpectedResponseError,
)
from .host import Host
from .net import Impairment, UdpEndpoint
from .packet import Packet
from .transaction import Reply, Transaction

__all__ = [
    "BindingResult",
    "ClientConfig",
    "FramingError",
    "Host",
    "Impairment",
    "Packet",
    "Reply",
    "StunClient",
    "StunError",
    "StunResponseError",
    "Transaction",
    "TransportReadError",
    "TransportWriteError",
    "UnexpectedResponseError",
    "UdpEndpoint",
]
