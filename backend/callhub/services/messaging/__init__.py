"""
Realtime messaging: envelope encoding and inbound routing.

The router lives in `callhub.services.messaging.router` and is imported from
there directly, since it depends on the call service.
"""
from .exceptions import ProtocolError
from .encoding import OutboundType

__all__ = ["ProtocolError", "OutboundType"]
