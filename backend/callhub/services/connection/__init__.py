"""
Connection Management Module

Registry of live WebSocket sessions keyed by user id.
"""
from .exceptions import DeliveryError
from .models import ClientConnection
from .manager import ConnectionManager
from .outbox import Outbox

__all__ = [
    "ClientConnection",
    "ConnectionManager",
    "DeliveryError",
    "Outbox",
]
