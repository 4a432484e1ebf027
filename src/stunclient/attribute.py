from __future__ import annotations

import ipaddress
import struct
import zlib
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import (
    ATTR_CHANGE_REQUEST,
    ATTR_ERROR_CODE,
    ATTR_FINGERPRINT,
    ATTR_HEADER_FORMAT,
    ATTR_SOFTWARE,
    CHANGE_IP,
    CHANGE_PORT,
    FAMILY_IPV4,
    FINGERPRINT_XOR,
)
from .host import Host

ADDRESS_FORMAT = "!BBH4s"  # reserved, family, port, ipv4
MAX_ATTR_VALUE_LEN = 0xFFFF


def aligned_length(n: int) -> int:
    """Round ``n`` up to the next multiple of 4."""
    return ((n + 3) // 4) * 4


@dataclass(frozen=True, slots=True)
class Attribute:
    type: int
    value: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= self.type <= 0xFFFF:
            raise ValueError(f"attribute type out of range: {self.type}")
        if len(self.value) > MAX_ATTR_VALUE_LEN:
            raise ValueError(f"attribute value too long: {len(self.value)} bytes")

    @property
    def length(self) -> int:
        return len(self.value)

    @property
    def padded_length(self) -> int:
        return aligned_length(len(self.value))

    def to_bytes(self) -> bytes:
        return struct.pack(ATTR_HEADER_FORMAT, self.type, len(self.value)) + self.value

    @staticmethod
    def decode(attr_type: int, raw: bytes) -> "Attribute":
        return Attribute(type=attr_type, value=bytes(raw))


def _unpack_address(value: bytes) -> Optional[Tuple[int, int, bytes]]:
    if len(value) < struct.calcsize(ADDRESS_FORMAT):
        return None
    _, family, port, ip = struct.unpack_from(ADDRESS_FORMAT, value)
    if family != FAMILY_IPV4:
        return None
    return family, port, ip


def plain_address(attr: Attribute) -> Optional[Host]:
    """Decode MAPPED-ADDRESS, SOURCE-ADDRESS or CHANGED-ADDRESS."""
    unpacked = _unpack_address(attr.value)
    if unpacked is None:
        return None
    family, port, ip = unpacked
    return Host(ip=str(ipaddress.IPv4Address(ip)), port=port, family=family)


def xor_mapped_address(attr: Attribute, transaction_id: bytes) -> Optional[Host]:
    """Decode XOR-MAPPED-ADDRESS against the cookie-prefixed transaction id.

    The port is XORed with the first two bytes of the transaction id and the
    address with the first four (RFC 5389 section 15.2).
    """
    unpacked = _unpack_address(attr.value)
    if unpacked is None or len(transaction_id) < 4:
        return None
    family, port, ip = unpacked
    port ^= struct.unpack_from("!H", transaction_id)[0]
    ip = bytes(a ^ b for a, b in zip(ip, transaction_id[:4]))
    return Host(ip=str(ipaddress.IPv4Address(ip)), port=port, family=family)


def error_code(attr: Attribute) -> Optional[Tuple[int, str]]:
    if attr.type != ATTR_ERROR_CODE or len(attr.value) < 4:
        return None
    cls = attr.value[2] & 0x07
    number = attr.value[3]
    reason = attr.value[4:].decode("utf-8", errors="replace")
    return cls * 100 + number, reason


def software(name: str) -> Attribute:
    return Attribute(ATTR_SOFTWARE, name.encode("utf-8"))


def change_request(change_ip: bool = False, change_port: bool = False) -> Attribute:
    flags = 0
    if change_ip:
        flags |= CHANGE_IP
    if change_port:
        flags |= CHANGE_PORT
    return Attribute(ATTR_CHANGE_REQUEST, struct.pack("!I", flags))


def fingerprint(message: bytes) -> Attribute:
    """FINGERPRINT over ``message``, which must already carry the final length."""
    crc = zlib.crc32(message) ^ FINGERPRINT_XOR
    return Attribute(ATTR_FINGERPRINT, struct.pack("!I", crc & 0xFFFFFFFF))
