from __future__ import annotations

import secrets
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import attribute as attrs
from .attribute import Attribute, aligned_length
from .constants import (
    ATTR_CHANGED_ADDRESS,
    ATTR_ERROR_CODE,
    ATTR_HEADER_FORMAT,
    ATTR_MAPPED_ADDRESS,
    ATTR_SOFTWARE,
    ATTR_SOURCE_ADDRESS,
    ATTR_XOR_MAPPED_ADDRESS,
    ATTR_XOR_MAPPED_ADDRESS_EXP,
    BINDING_REQUEST,
    CLASS_ERROR,
    CLASS_MASK,
    CLASS_SUCCESS,
    HEADER_FORMAT,
    HEADER_LEN,
    MAGIC_COOKIE,
    MIN_PACKET_LEN,
    TRANSACTION_ID_LEN,
)
from .errors import FramingError
from .host import Host

ATTR_HEADER_LEN = struct.calcsize(ATTR_HEADER_FORMAT)
MAX_ATTRS_LEN = 0xFFFF


def new_transaction_id() -> bytes:
    return struct.pack("!I", MAGIC_COOKIE) + secrets.token_bytes(TRANSACTION_ID_LEN - 4)


@dataclass(slots=True)
class Packet:
    """A STUN message: header, transaction id and an ordered attribute list.

    ``length`` is the byte size of the attribute section as it appears on the
    wire (padding included). Use :meth:`add_attribute` to append so that it
    stays in sync.
    """

    type: int
    transaction_id: bytes
    length: int = 0
    attributes: List[Attribute] = field(default_factory=list)

    @staticmethod
    def new(msg_type: int = BINDING_REQUEST) -> "Packet":
        return Packet(type=msg_type, transaction_id=new_transaction_id())

    def add_attribute(self, attr: Attribute) -> None:
        size = ATTR_HEADER_LEN + aligned_length(attr.length)
        if self.length + size > MAX_ATTRS_LEN:
            raise ValueError(f"attribute section would grow to {self.length + size} bytes, limit is {MAX_ATTRS_LEN}")
        self.attributes.append(attr)
        self.length += size

    def add_fingerprint(self) -> None:
        # the CRC covers a header whose length already counts the fingerprint
        final_length = self.length + ATTR_HEADER_LEN + 4
        self.add_attribute(attrs.fingerprint(self._encode(final_length)))

    def _encode(self, length: int) -> bytes:
        out = bytearray(struct.pack(HEADER_FORMAT, self.type, length))
        out += self.transaction_id
        for a in self.attributes:
            out += a.to_bytes()
            out += b"\x00" * (a.padded_length - a.length)
        return bytes(out)

    def to_bytes(self) -> bytes:
        return self._encode(self.length)

    @staticmethod
    def from_bytes(raw: bytes) -> "Packet":
        if len(raw) < MIN_PACKET_LEN:
            raise FramingError(f"datagram too short for a STUN message: {len(raw)} bytes")

        msg_type, length = struct.unpack_from(HEADER_FORMAT, raw)
        pkt = Packet(type=msg_type, transaction_id=bytes(raw[4:HEADER_LEN]))
        pkt.length = length

        pos = HEADER_LEN
        end = len(raw)
        while pos < end:
            if pos + ATTR_HEADER_LEN > end:
                raise FramingError(f"truncated attribute header at offset {pos}")
            attr_type, attr_len = struct.unpack_from(ATTR_HEADER_FORMAT, raw, pos)
            value_start = pos + ATTR_HEADER_LEN
            if value_start + attr_len > end:
                raise FramingError(
                    f"attribute 0x{attr_type:04x} at offset {pos} claims {attr_len} bytes, "
                    f"only {end - value_start} left"
                )
            pkt.attributes.append(Attribute.decode(attr_type, raw[value_start : value_start + attr_len]))
            pos = value_start + aligned_length(attr_len)
        return pkt

    def _first(self, *types: int) -> Optional[Attribute]:
        for a in self.attributes:
            if a.type in types:
                return a
        return None

    def source_address(self) -> Optional[Host]:
        a = self._first(ATTR_SOURCE_ADDRESS)
        return attrs.plain_address(a) if a is not None else None

    def mapped_address(self) -> Optional[Host]:
        a = self._first(ATTR_MAPPED_ADDRESS)
        return attrs.plain_address(a) if a is not None else None

    def changed_address(self) -> Optional[Host]:
        a = self._first(ATTR_CHANGED_ADDRESS)
        return attrs.plain_address(a) if a is not None else None

    def xor_mapped_address(self) -> Optional[Host]:
        a = self._first(ATTR_XOR_MAPPED_ADDRESS, ATTR_XOR_MAPPED_ADDRESS_EXP)
        return attrs.xor_mapped_address(a, self.transaction_id) if a is not None else None

    def error_code(self) -> Optional[Tuple[int, str]]:
        a = self._first(ATTR_ERROR_CODE)
        return attrs.error_code(a) if a is not None else None

    def software(self) -> Optional[str]:
        a = self._first(ATTR_SOFTWARE)
        return a.value.decode("utf-8", errors="replace") if a is not None else None

    @property
    def is_success(self) -> bool:
        return self.type & CLASS_MASK == CLASS_SUCCESS

    @property
    def is_error(self) -> bool:
        return self.type & CLASS_MASK == CLASS_ERROR
