"""
Schemas Package

Pydantic models for API and WebSocket events.
"""

from callhub.schemas.websocket_events import (
    Envelope,
    TypingIndicator,
    WebRTCSignal,
    MuteToggle,
    ParticipantUpdate,
    CallStatusUpdate,
    CallInitiatedNotification,
    UserStatusUpdate,
    NewMessageNotification,
)
from callhub.schemas.call import CallResponse, CallParticipantResponse
from callhub.schemas.chat import MessageResponse, UserResponse

__all__ = [
    "Envelope",
    "TypingIndicator",
    "WebRTCSignal",
    "MuteToggle",
    "ParticipantUpdate",
    "CallStatusUpdate",
    "CallInitiatedNotification",
    "UserStatusUpdate",
    "NewMessageNotification",
    "CallResponse",
    "CallParticipantResponse",
    "MessageResponse",
    "UserResponse",
]
