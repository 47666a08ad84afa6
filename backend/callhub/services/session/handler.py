import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect

from callhub.config.constants import WS_CLOSE_POLICY_VIOLATION
from callhub.container import Services
from callhub.models import UserStatus
from callhub.services.auth_service import AuthError, verify_token
from callhub.services.connection import ClientConnection

logger = logging.getLogger(__name__)


class ConnectionSession:
    """
    Drives the lifecycle of one realtime WebSocket.
    Handles:
    - Token verification (policy-violation close before registration)
    - Registration and ONLINE presence
    - Receive loop, one frame at a time in arrival order
    - Deregistration and OFFLINE presence on any exit
    """

    def __init__(self, websocket: WebSocket, services: Services, token: Optional[str]):
        self.websocket = websocket
        self.services = services
        self.token = token
        self.user_id: Optional[str] = None
        self.connection: Optional[ClientConnection] = None

    async def run(self):
        """Main entry point for handling a WebSocket connection."""
        try:
            self.user_id = self._authenticate()
        except AuthError as e:
            logger.warning(f"[Session] Rejected connection: {e}")
            await self.websocket.close(code=WS_CLOSE_POLICY_VIOLATION, reason=str(e))
            return

        await self.websocket.accept()
        await self._register()
        try:
            await self._message_loop()
        except WebSocketDisconnect:
            logger.info(f"[Session] User {self.user_id} disconnected")
        except Exception as e:
            logger.error(f"[Session] Error during message loop for {self.user_id}: {e}", exc_info=True)
        finally:
            await self._cleanup()

    def _authenticate(self) -> str:
        user_id = verify_token(self.token)
        if self.services.user_service.get_by_id(user_id) is None:
            raise AuthError("User not found")
        return user_id

    async def _register(self):
        self.connection = ClientConnection(
            websocket=self.websocket,
            user_id=self.user_id,
            send_timeout=self.services.settings.WS_SEND_TIMEOUT_SECONDS,
        )
        previous = await self.services.connection_manager.register(self.user_id, self.connection)
        if previous is not None and previous is not self.connection:
            await self._close_superseded(previous)
        await self.services.status_service.update_status(self.user_id, UserStatus.ONLINE)

    async def _message_loop(self):
        router = self.services.message_router
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is not None:
                await router.dispatch(self.user_id, text)
            else:
                logger.warning(f"[Session] Ignoring non-text frame from {self.user_id}")

    async def _cleanup(self):
        removed = await self.services.connection_manager.deregister(self.user_id, self.connection)
        if removed:
            await self.services.status_service.update_status(self.user_id, UserStatus.OFFLINE)

    async def _close_superseded(self, previous: ClientConnection):
        previous.mark_closed()
        try:
            await previous.websocket.close(code=1000, reason="Session replaced")
        except RuntimeError as e:
            # Already closed by the client
            logger.debug(f"[Session] Superseded socket for {self.user_id} already closed: {e}")
