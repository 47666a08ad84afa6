"""
Session management module.

Provides the ConnectionSession that drives one WebSocket from handshake to
teardown.
"""
from .handler import ConnectionSession

__all__ = ["ConnectionSession"]
