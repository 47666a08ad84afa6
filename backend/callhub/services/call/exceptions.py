"""
Call Service Exceptions

Raised when an operation's preconditions are not met. Each one is an
explicit failure result for the caller; none of them leaves partial state.
"""


class CallServiceError(Exception):
    """Base exception for call service errors"""
    pass


class CallNotFoundError(CallServiceError):
    """Raised when call is not found"""
    pass


class InvalidCallStateError(CallServiceError):
    """Raised when the call's type or status does not allow the operation"""
    pass


class AlreadyInCallError(CallServiceError):
    """Raised when caller or callee already has a call that has not ended"""
    pass


class ActiveCallExistsError(CallServiceError):
    """Raised when a group already has an active call"""
    pass


class GroupNotFoundError(CallServiceError):
    """Raised when the group for a group call does not exist"""
    pass


class UserNotFoundError(CallServiceError):
    """Raised when a referenced user is not in the directory"""
    pass


class NotAParticipantError(CallServiceError):
    """Raised when the user is not a participant of the call"""
    pass


class InvalidCallTargetError(CallServiceError):
    """Raised when a user tries to call themselves"""
    pass
