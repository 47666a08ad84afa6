"""
Connection Models

A live WebSocket bound to one user id.
"""
import asyncio
from datetime import datetime, UTC
import logging

from fastapi import WebSocket

from callhub.services.metrics import deliveries_failed
from .exceptions import DeliveryError

logger = logging.getLogger(__name__)


class ClientConnection:
    """Represents a single user's WebSocket session."""

    def __init__(self, websocket: WebSocket, user_id: str, send_timeout: float = 5.0):
        self.websocket = websocket
        self.user_id = user_id
        self.send_timeout = send_timeout
        self.connected_at = datetime.now(UTC)
        self.is_open = True
        # Serializes writes so concurrent senders never interleave frames
        self._send_lock = asyncio.Lock()

    async def send_text(self, text: str) -> bool:
        """Send one encoded frame. Returns False instead of raising on failure."""
        try:
            await self._write(text)
            return True
        except DeliveryError as e:
            deliveries_failed.inc()
            logger.warning(f"[Connection] Delivery to {self.user_id} failed: {e}")
            return False

    async def _write(self, text: str) -> None:
        async with self._send_lock:
            if not self.is_open:
                raise DeliveryError("session is closed")
            try:
                await asyncio.wait_for(self.websocket.send_text(text), timeout=self.send_timeout)
            except asyncio.TimeoutError:
                # A cancelled write may have left a partial frame on the wire
                self.is_open = False
                raise DeliveryError(f"write timed out after {self.send_timeout}s")
            except Exception as e:
                # The socket refused the write; stop trying to use it
                self.is_open = False
                raise DeliveryError(str(e) or type(e).__name__) from e

    def mark_closed(self) -> None:
        self.is_open = False
