"""
Call Service Module

Re-exports CallService and its exceptions.
"""
from .service import CallService
from .exceptions import (
    CallServiceError,
    CallNotFoundError,
    InvalidCallStateError,
    AlreadyInCallError,
    ActiveCallExistsError,
    GroupNotFoundError,
    UserNotFoundError,
    NotAParticipantError,
    InvalidCallTargetError,
)

__all__ = [
    "CallService",
    "CallServiceError",
    "CallNotFoundError",
    "InvalidCallStateError",
    "AlreadyInCallError",
    "ActiveCallExistsError",
    "GroupNotFoundError",
    "UserNotFoundError",
    "NotAParticipantError",
    "InvalidCallTargetError",
]
