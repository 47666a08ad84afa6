"""
Messaging Exceptions

Errors raised while decoding inbound realtime frames.
"""


class ProtocolError(Exception):
    """Raised when a frame or its payload cannot be decoded.

    The frame is dropped and the connection stays open.
    """

    def __init__(self, message: str, reason: str = "malformed"):
        super().__init__(message)
        self.reason = reason
