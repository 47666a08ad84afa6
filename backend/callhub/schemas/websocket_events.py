"""
WebSocket Event Schemas

Pydantic models for the realtime envelope and every payload it carries.

Every frame in both directions is an envelope:

    {"type": "<tag>", "data": <payload>}

`data` is the payload's JSON value embedded in the frame, so the frame is
serialized exactly once. Types without a payload (ping / pong) carry "".
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel

from callhub.models import CallStatus, UserStatus
from callhub.schemas.base import CamelModel
from callhub.schemas.call import CallResponse
from callhub.schemas.chat import MessageResponse


# =============================================================================
# Envelope
# =============================================================================

class Envelope(BaseModel):
    """Outer wrapper of every realtime frame."""
    type: str
    data: Any = ""


# =============================================================================
# Inbound / relayed payloads
# =============================================================================

class TypingIndicator(CamelModel):
    """Typing state of a user in a group or DM. Relayed to the conversation's members."""
    user_id: str
    user_name: str
    group_id: Optional[str] = None
    dm_id: Optional[str] = None
    is_typing: bool


class WebRTCSignal(CamelModel):
    """
    Offer / answer / ICE candidate / call_ended signal between two peers.

    `signal` is an opaque string (SDP or serialized candidate); the server
    never looks inside it.
    """
    call_id: Optional[str] = None
    from_user_id: Optional[str] = None
    to_user_id: Optional[str] = None
    signal: Optional[str] = None
    ended: Optional[bool] = None


class MuteToggle(CamelModel):
    """Client reports its own mute state for a call."""
    call_id: str
    is_muted: bool


# =============================================================================
# Outbound-only payloads
# =============================================================================

ParticipantAction = Literal["started_call", "joined", "left", "muted", "unmuted"]


class ParticipantUpdate(CamelModel):
    call_id: str
    user_id: str
    user_name: str
    action: ParticipantAction
    is_muted: Optional[bool] = None


class CallStatusUpdate(CamelModel):
    call_id: str
    status: CallStatus


class CallInitiatedNotification(CamelModel):
    call: CallResponse
    caller_name: str


class UserStatusUpdate(CamelModel):
    user_id: str
    status: UserStatus


class NewMessageNotification(CamelModel):
    message: MessageResponse
