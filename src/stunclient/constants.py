from __future__ import annotations

MAGIC_COOKIE = 0x2112A442
FINGERPRINT_XOR = 0x5354554E

HEADER_FORMAT = "!HH"  # type, length
TRANSACTION_ID_LEN = 16
HEADER_LEN = 4 + TRANSACTION_ID_LEN
MIN_PACKET_LEN = 24
ATTR_HEADER_FORMAT = "!HH"  # type, length

# message types
BINDING_REQUEST = 0x0001
BINDING_RESPONSE = 0x0101
BINDING_ERROR_RESPONSE = 0x0111

CLASS_MASK = 0x0110
CLASS_SUCCESS = 0x0100
CLASS_ERROR = 0x0110

# attribute types
ATTR_MAPPED_ADDRESS = 0x0001
ATTR_CHANGE_REQUEST = 0x0003
ATTR_SOURCE_ADDRESS = 0x0004
ATTR_CHANGED_ADDRESS = 0x0005
ATTR_ERROR_CODE = 0x0009
ATTR_XOR_MAPPED_ADDRESS = 0x0020
ATTR_XOR_MAPPED_ADDRESS_EXP = 0x8020
ATTR_SOFTWARE = 0x8022
ATTR_FINGERPRINT = 0x8028

FAMILY_IPV4 = 0x01

CHANGE_IP = 0x04
CHANGE_PORT = 0x02

# RFC 3489 retransmission: 100ms doubling to 1.6s, 9 requests in total
DEFAULT_INITIAL_TIMEOUT_MS = 100
DEFAULT_MAX_TIMEOUT_MS = 1600
DEFAULT_MAX_ATTEMPTS = 9
DEFAULT_RECV_BUFSIZE = 1024

DEFAULT_SERVER = "stun.l.google.com"
DEFAULT_PORT = 19302
DEFAULT_SOFTWARE = "stunclient"
