"""
WebSocket API module.

Provides the WebSocket router for the realtime channel.
"""
from .router import router

__all__ = ["router"]
