from __future__ import annotations


class StunError(Exception):
    """Base class for everything this package raises."""


class FramingError(StunError, ValueError):
    """A buffer could not be decoded as a STUN message."""


class TransportWriteError(StunError, OSError):
    """The request could not be written, or only part of it was."""


class TransportReadError(StunError, OSError):
    """Reading from the socket failed for a reason other than the deadline."""


class StunResponseError(StunError):
    def __init__(self, code: int, reason: str):
        super().__init__(f"server returned error {code}: {reason}")
        self.code = code
        self.reason = reason


class UnexpectedResponseError(StunError):
    """A reply matched the request but is not a usable binding success."""
