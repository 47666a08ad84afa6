"""
Status Tracking Service - Presence for connected users

Holds one `UserStatus` per user id (default OFFLINE) and announces every
change. The in-memory table is the source of truth; an optional Redis
mirror publishes the same state for external read paths:

1. update_status() sets the status and broadcasts `user_status`
2. The mirror writes presence:{user_id} with a TTL
3. Client pings refresh the TTL through heartbeat()
4. If the process dies the Redis keys expire on their own

Presence is the one realtime event that is deliberately global: every
connected session receives every `user_status` announcement, because user
lists and DM screens show status for users outside the viewer's groups.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional

from redis.exceptions import RedisError

from callhub.models import UserStatus
from callhub.schemas.websocket_events import UserStatusUpdate
from callhub.services.connection import ConnectionManager, Outbox
from callhub.services.messaging.encoding import encode_user_status

logger = logging.getLogger(__name__)

RedisGetter = Callable[[], Awaitable[object]]


class StatusService:
    """Service to track and announce user presence."""

    PRESENCE_KEY = "presence:{user_id}"

    def __init__(
        self,
        connection_manager: ConnectionManager,
        redis_getter: Optional[RedisGetter] = None,
        presence_ttl: int = 60,
    ):
        self.connection_manager = connection_manager
        self._redis_getter = redis_getter
        self._presence_ttl = presence_ttl
        self._statuses: Dict[str, UserStatus] = {}
        self._current_calls: Dict[str, str] = {}

    # === Status table ===

    def get_status(self, user_id: str) -> UserStatus:
        return self._statuses.get(user_id, UserStatus.OFFLINE)

    def set_status(self, user_id: str, status: UserStatus) -> bool:
        """
        Set a user's status without announcing it.

        Used inside call critical sections, which announce once the call
        state is consistent. Returns True if the value changed.
        """
        previous = self.get_status(user_id)
        self._statuses[user_id] = status
        return previous != status

    async def announce(self, user_id: str) -> int:
        """
        Broadcast the user's current status to every connected session.

        Returns:
            Number of sessions notified.
        """
        status = self.get_status(user_id)
        await self._mirror(user_id, status)
        sent = await self.connection_manager.broadcast_all(self.status_frame(user_id))
        logger.debug(f"[Presence] {user_id} -> {status.value} announced to {sent} sessions")
        return sent

    def status_frame(self, user_id: str) -> str:
        """Encoded `user_status` frame for the user's current status."""
        return encode_user_status(UserStatusUpdate(user_id=user_id, status=self.get_status(user_id)))

    def stage_announcement(self, user_id: str, outbox: Outbox) -> None:
        """Queue the user's current status for every session; see `sync_mirror`."""
        outbox.to_everyone(self.status_frame(user_id))

    async def sync_mirror(self, user_id: str) -> None:
        """Write the user's current status to the Redis mirror, if enabled."""
        await self._mirror(user_id, self.get_status(user_id))

    async def update_status(self, user_id: str, status: UserStatus) -> int:
        """Set the status and broadcast it, whether or not it changed."""
        self.set_status(user_id, status)
        logger.info(f"[Presence] User {user_id} is {status.value}")
        return await self.announce(user_id)

    # === Current call bookkeeping ===

    def set_current_call(self, user_id: str, call_id: Optional[str]) -> None:
        if call_id is None:
            self._current_calls.pop(user_id, None)
        else:
            self._current_calls[user_id] = call_id

    def get_current_call(self, user_id: str) -> Optional[str]:
        return self._current_calls.get(user_id)

    # === Redis mirror ===

    async def heartbeat(self, user_id: str) -> None:
        """Refresh the mirrored presence TTL for a live user."""
        if self._redis_getter is None:
            return
        try:
            redis = await self._redis_getter()
            await redis.expire(self.PRESENCE_KEY.format(user_id=user_id), self._presence_ttl)
        except (RedisError, OSError) as e:
            logger.warning(f"[Presence] Heartbeat mirror failed for {user_id}: {e}")

    async def _mirror(self, user_id: str, status: UserStatus) -> None:
        if self._redis_getter is None:
            return
        key = self.PRESENCE_KEY.format(user_id=user_id)
        try:
            redis = await self._redis_getter()
            if status == UserStatus.OFFLINE:
                await redis.delete(key)
            else:
                await redis.set(key, status.value, ex=self._presence_ttl)
        except (RedisError, OSError) as e:
            logger.warning(f"[Presence] Redis mirror failed for {user_id}: {e}")
