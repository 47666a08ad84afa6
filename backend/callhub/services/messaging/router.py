"""
Message Router - Inbound realtime frames

Decodes each inbound frame into an envelope, picks the handler for its type
tag and lets the handler produce outbound frames through the connection
manager.

A frame that cannot be decoded, or whose payload does not match its type, is
dropped with a log line. The connection is never closed because of a single
bad frame.

Message Types (JSON envelopes):
    - ping: answered with pong to the sender
    - typing_indicator: relayed to the other members of the group / DM
    - webrtc_offer, webrtc_answer, ice_candidate, call_ended: relayed
      unchanged to `toUserId`
    - mute_toggle: applied to the sender's participant record
"""
import logging
from typing import Awaitable, Callable, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from callhub.config.constants import (
    MSG_MUTE_TOGGLE,
    MSG_PING,
    MSG_TYPING_INDICATOR,
    SIGNAL_RELAY_TYPES,
)
from callhub.schemas.websocket_events import (
    Envelope,
    MuteToggle,
    TypingIndicator,
    WebRTCSignal,
)
from callhub.services.call import CallService, CallServiceError
from callhub.services.chat_service import ChatService
from callhub.services.connection import ConnectionManager
from callhub.services.metrics import frames_dropped, frames_received
from callhub.services.status_service import StatusService

from .encoding import OutboundType, encode_pong, encode_signal, encode_typing_indicator
from .exceptions import ProtocolError

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)
Handler = Callable[[str, Envelope], Awaitable[None]]


class MessageRouter:
    """Dispatches decoded envelopes to per-type handlers."""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        call_service: CallService,
        chat_service: ChatService,
        status_service: StatusService,
    ):
        self.connection_manager = connection_manager
        self.call_service = call_service
        self.chat_service = chat_service
        self.status_service = status_service

        self._handlers: Dict[str, Handler] = {
            MSG_PING: self._handle_ping,
            MSG_TYPING_INDICATOR: self._handle_typing_indicator,
            MSG_MUTE_TOGGLE: self._handle_mute_toggle,
        }
        for signal_type in SIGNAL_RELAY_TYPES:
            self._handlers[signal_type] = self._handle_signal

    # === Entry point ===

    async def dispatch(self, sender_id: str, raw: str) -> None:
        """Handle one inbound text frame from `sender_id`."""
        try:
            envelope = self.decode(raw)
        except ProtocolError as e:
            self._drop(sender_id, e)
            return

        handler = self._handlers.get(envelope.type)
        if handler is None:
            frames_dropped.labels(reason="unknown_type").inc()
            logger.warning(f"[Router] Unknown message type from {sender_id}: {envelope.type!r}")
            return

        frames_received.labels(type=envelope.type).inc()
        try:
            await handler(sender_id, envelope)
        except ProtocolError as e:
            self._drop(sender_id, e)

    @staticmethod
    def decode(raw: str) -> Envelope:
        """
        Parse a frame into an envelope.

        Raises:
            ProtocolError: the frame is not a JSON object with a string `type`
        """
        try:
            return Envelope.model_validate_json(raw)
        except ValidationError as e:
            raise ProtocolError(f"Undecodable envelope: {e.error_count()} error(s)") from e

    # === Handlers ===

    async def _handle_ping(self, sender_id: str, envelope: Envelope) -> None:
        await self.connection_manager.send_to(sender_id, encode_pong())
        await self.status_service.heartbeat(sender_id)

    async def _handle_typing_indicator(self, sender_id: str, envelope: Envelope) -> None:
        indicator = self._parse_payload(envelope, TypingIndicator)

        members = self.chat_service.resolve_members(group_id=indicator.group_id, dm_id=indicator.dm_id)
        if sender_id not in members:
            raise ProtocolError(
                f"typing_indicator for group={indicator.group_id} dm={indicator.dm_id} "
                f"does not resolve to a conversation of {sender_id}",
                reason="no_recipient",
            )

        recipients = [m for m in members if m != sender_id]
        await self.connection_manager.send_to_many(recipients, encode_typing_indicator(indicator))

    async def _handle_signal(self, sender_id: str, envelope: Envelope) -> None:
        signal = self._parse_payload(envelope, WebRTCSignal)
        if not signal.to_user_id:
            raise ProtocolError(f"{envelope.type} without toUserId", reason="no_recipient")

        # Forward the payload object exactly as received
        frame = encode_signal(OutboundType(envelope.type), envelope.data)
        delivered = await self.connection_manager.send_to(signal.to_user_id, frame)
        logger.debug(
            f"[Router] {envelope.type} {sender_id} -> {signal.to_user_id} "
            f"({'delivered' if delivered else 'not delivered'})"
        )

    async def _handle_mute_toggle(self, sender_id: str, envelope: Envelope) -> None:
        toggle = self._parse_payload(envelope, MuteToggle)
        try:
            await self.call_service.toggle_mute(toggle.call_id, sender_id, toggle.is_muted)
        except CallServiceError as e:
            logger.warning(f"[Router] mute_toggle from {sender_id} rejected: {e}")

    # === Helpers ===

    @staticmethod
    def _parse_payload(envelope: Envelope, model: Type[PayloadT]) -> PayloadT:
        try:
            return model.model_validate(envelope.data)
        except ValidationError as e:
            raise ProtocolError(
                f"Invalid {envelope.type} payload: {e.error_count()} error(s)",
                reason="invalid_payload",
            ) from e

    @staticmethod
    def _drop(sender_id: str, error: ProtocolError) -> None:
        frames_dropped.labels(reason=error.reason).inc()
        logger.warning(f"[Router] Dropped frame from {sender_id}: {error}")
