"""
Connection Manager

Registry of live WebSocket sessions, one per user id:
- Register / deregister on connect and disconnect
- Directed sends, multi-user fan-out and global broadcast

Every send takes an already-encoded frame. Delivery is best effort: a user
who is not connected, or whose socket refuses the write, is skipped and
reported as not delivered. Fan-out never stops at a failing recipient.
"""
import asyncio
from typing import Dict, Iterable, List, Optional
import logging

from callhub.services.metrics import active_connections_gauge
from .models import ClientConnection
from .outbox import Outbox

logger = logging.getLogger(__name__)

class ConnectionManager:
    """
    Manages all live WebSocket connections.

    Provides methods for:
    - Registering and deregistering a user's session
    - Sending a frame to one user, to a set of users, or to everyone
    """

    def __init__(self):
        # user_id -> ClientConnection
        self._connections: Dict[str, ClientConnection] = {}
        self._lock = asyncio.Lock()

    # === Core Connection Methods ===

    async def register(self, user_id: str, connection: ClientConnection) -> Optional[ClientConnection]:
        """
        Register a user's session.

        An existing session for the same user is superseded but not closed;
        closing it is the caller's decision.

        Returns:
            The superseded connection, if there was one.
        """
        async with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = connection
            active_connections_gauge.set(len(self._connections))

        if previous is not None and previous is not connection:
            logger.info(f"User {user_id} reconnected; previous session superseded")
        else:
            logger.info(f"User {user_id} connected")
        return previous

    async def deregister(self, user_id: str, connection: Optional[ClientConnection] = None) -> bool:
        """
        Remove a user's session.

        When `connection` is given, the entry is only removed if it is still
        that connection, so a superseded socket's teardown cannot evict the
        session that replaced it.

        Returns:
            True if an entry was removed.
        """
        async with self._lock:
            current = self._connections.get(user_id)
            if current is None:
                return False
            if connection is not None and current is not connection:
                logger.debug(f"Skip deregister for {user_id}: session already replaced")
                return False
            del self._connections[user_id]
            active_connections_gauge.set(len(self._connections))

        current.mark_closed()
        logger.info(f"User {user_id} disconnected")
        return True

    # === Send Methods ===

    async def send_to(self, user_id: str, frame: str) -> bool:
        """Send a frame to one user. No-op returning False if not connected."""
        conn = self._connections.get(user_id)
        if conn is None:
            logger.debug(f"User {user_id} not connected, frame not sent")
            return False
        return await conn.send_text(frame)

    async def send_to_many(self, user_ids: Iterable[str], frame: str) -> int:
        """
        Send a frame to each listed user independently.

        Returns:
            Number of users the frame was delivered to.
        """
        targets = list(dict.fromkeys(user_ids))
        if not targets:
            return 0
        results = await asyncio.gather(*(self.send_to(uid, frame) for uid in targets))
        return sum(1 for ok in results if ok)

    async def broadcast_all(self, frame: str, exclude_user: Optional[str] = None) -> int:
        """
        Send a frame to every session registered at the time of the call.

        Returns:
            Number of sessions the frame was delivered to.
        """
        connections = [
            conn for uid, conn in list(self._connections.items())
            if uid != exclude_user
        ]
        if not connections:
            return 0
        results = await asyncio.gather(*(conn.send_text(frame) for conn in connections))
        return sum(1 for ok in results if ok)

    async def flush(self, outbox: Outbox) -> int:
        """
        Send every staged frame.

        All writes are started together, in staging order, so each session
        receives its frames in the order they were staged and in the order
        successive outboxes were flushed.

        Returns:
            Number of frames delivered.
        """
        pending = []
        for user_ids, frame in outbox:
            if user_ids is None:
                targets = list(self._connections.values())
            else:
                targets = [c for c in (self._connections.get(uid) for uid in user_ids) if c is not None]
            pending.extend((conn, frame) for conn in targets)
        if not pending:
            return 0
        results = await asyncio.gather(*(conn.send_text(frame) for conn, frame in pending))
        return sum(1 for ok in results if ok)

    # === Query Methods ===

    def get(self, user_id: str) -> Optional[ClientConnection]:
        """Get a user's connection object."""
        return self._connections.get(user_id)

    def is_connected(self, user_id: str) -> bool:
        """Check if a user currently has a live session."""
        return user_id in self._connections

    def connected_user_ids(self) -> List[str]:
        return list(self._connections.keys())

    def get_total_connections(self) -> int:
        """Get total number of active connections."""
        return len(self._connections)
