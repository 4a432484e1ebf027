from __future__ import annotations

import struct
import zlib

import pytest

from stunclient import attribute as attrs
from stunclient.attribute import Attribute, aligned_length
from stunclient.constants import (
    ATTR_ERROR_CODE,
    ATTR_MAPPED_ADDRESS,
    ATTR_XOR_MAPPED_ADDRESS,
    ATTR_XOR_MAPPED_ADDRESS_EXP,
    MAGIC_COOKIE,
)
from stunclient.host import Host

from conftest import address_value

TXN = struct.pack("!I", MAGIC_COOKIE) + bytes(range(12))


@pytest.mark.parametrize("n", range(0, 41))
def test_aligned_length(n):
    a = aligned_length(n)
    assert a >= n
    assert a % 4 == 0
    assert a - n < 4
    assert aligned_length(a) == a


def test_aligned_length_example():
    assert aligned_length(5) == 8
    assert aligned_length(0) == 0
    assert aligned_length(4) == 4


def test_encode_has_no_padding():
    a = Attribute(0x8022, b"abcde")
    assert a.to_bytes() == b"\x80\x22\x00\x05abcde"
    assert a.length == 5
    assert a.padded_length == 8


def test_decode_copies_any_bytes():
    buf = bytearray(b"\x01\x02\x03")
    a = Attribute.decode(0x7777, memoryview(buf))
    buf[0] = 0xFF
    assert a.value == b"\x01\x02\x03"
    assert a.type == 0x7777


def test_plain_address():
    value = bytes([0, 1]) + struct.pack("!H", 54321) + bytes([203, 0, 113, 5])
    host = attrs.plain_address(Attribute(ATTR_MAPPED_ADDRESS, value))
    assert host == Host("203.0.113.5", 54321)
    assert str(host) == "203.0.113.5:54321"


@pytest.mark.parametrize(
    "value",
    [b"", b"\x00\x01\x00", b"\x00\x01\x12\x34\x01\x02\x03", b"\x00\x02\x12\x34" + bytes(16)],
)
def test_plain_address_malformed(value):
    assert attrs.plain_address(Attribute(ATTR_MAPPED_ADDRESS, value)) is None


def test_xor_mapped_address_reverses_cookie():
    port, ip = 54321, bytes([203, 0, 113, 5])
    cookie = struct.pack("!I", MAGIC_COOKIE)
    xport = port ^ (MAGIC_COOKIE >> 16)
    xip = bytes(a ^ b for a, b in zip(ip, cookie))
    value = bytes([0, 1]) + struct.pack("!H", xport) + xip
    for code in (ATTR_XOR_MAPPED_ADDRESS, ATTR_XOR_MAPPED_ADDRESS_EXP):
        assert attrs.xor_mapped_address(Attribute(code, value), TXN) == Host("203.0.113.5", 54321)


def test_xor_mapped_address_short_value():
    assert attrs.xor_mapped_address(Attribute(ATTR_XOR_MAPPED_ADDRESS, b"\x00\x01"), TXN) is None


def test_plain_and_xor_decoders_agree():
    host = Host("192.0.2.77", 3478)
    assert attrs.plain_address(Attribute(ATTR_MAPPED_ADDRESS, address_value(host))) == host
    xored = address_value(host, TXN)
    assert xored != address_value(host)
    assert attrs.xor_mapped_address(Attribute(ATTR_XOR_MAPPED_ADDRESS, xored), TXN) == host


def test_error_code():
    value = b"\x00\x00\x04\x14" + b"Unknown Attribute"
    assert attrs.error_code(Attribute(ATTR_ERROR_CODE, value)) == (420, "Unknown Attribute")
    assert attrs.error_code(Attribute(ATTR_ERROR_CODE, b"\x00")) is None


def test_change_request_flags():
    assert attrs.change_request().value == b"\x00\x00\x00\x00"
    assert attrs.change_request(change_ip=True).value == b"\x00\x00\x00\x04"
    assert attrs.change_request(change_port=True).value == b"\x00\x00\x00\x02"
    assert attrs.change_request(True, True).value == b"\x00\x00\x00\x06"


def test_software_and_fingerprint():
    assert attrs.software("héllo").value == "héllo".encode("utf-8")
    fp = attrs.fingerprint(b"message")
    assert struct.unpack("!I", fp.value)[0] == zlib.crc32(b"message") ^ 0x5354554E


def test_attribute_limits():
    Attribute(0xFFFF, bytes(0xFFFF))
    with pytest.raises(ValueError):
        Attribute(0x8022, bytes(0x10000))
    with pytest.raises(ValueError):
        Attribute(0x10000, b"")
    with pytest.raises(ValueError):
        Attribute(-1, b"")
