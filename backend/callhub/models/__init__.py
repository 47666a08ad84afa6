"""
Domain Models Package

In-memory domain objects for the realtime layer.

Entities:
1. User - account record (live status is tracked by the status service)
2. Group - group chat with its active-call pointer
3. DirectMessageConversation - 1:1 conversation with its active-call pointer
4. Message - chat message in a group or DM
5. Call / CallParticipant - call lifecycle and membership
"""

from .user import User, UserStatus
from .group import Group, DirectMessageConversation
from .message import Message
from .call import Call, CallParticipant, CallStatus, CallType

__all__ = [
    "User",
    "UserStatus",
    "Group",
    "DirectMessageConversation",
    "Message",
    "Call",
    "CallParticipant",
    "CallStatus",
    "CallType",
]
