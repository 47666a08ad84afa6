"""
Application-wide constants for the realtime layer.

Environment-dependent settings (JWT, Redis, ports) belong in settings.py.
This file holds protocol values and operational limits that do not change
between environments.
"""

# ==============================================================================
# WEBSOCKET
# ==============================================================================

# Close code sent when a connection cannot be authenticated (RFC 6455 policy violation)
WS_CLOSE_POLICY_VIOLATION: int = 1008

# Data value used by envelope types that carry no payload (ping / pong)
EMPTY_PAYLOAD: str = ""

# ==============================================================================
# INBOUND ENVELOPE TYPES
# ==============================================================================

MSG_PING: str = "ping"
MSG_TYPING_INDICATOR: str = "typing_indicator"
MSG_WEBRTC_OFFER: str = "webrtc_offer"
MSG_WEBRTC_ANSWER: str = "webrtc_answer"
MSG_ICE_CANDIDATE: str = "ice_candidate"
MSG_CALL_ENDED: str = "call_ended"
MSG_MUTE_TOGGLE: str = "mute_toggle"

# Signal types relayed verbatim to the addressed peer
SIGNAL_RELAY_TYPES: frozenset = frozenset({
    MSG_WEBRTC_OFFER,
    MSG_WEBRTC_ANSWER,
    MSG_ICE_CANDIDATE,
    MSG_CALL_ENDED,
})

# ==============================================================================
# PARTICIPANT UPDATE ACTIONS
# ==============================================================================

ACTION_STARTED_CALL: str = "started_call"
ACTION_JOINED: str = "joined"
ACTION_LEFT: str = "left"
ACTION_MUTED: str = "muted"
ACTION_UNMUTED: str = "unmuted"

# ==============================================================================
# MESSAGES
# ==============================================================================

# Default and maximum page size for message history
MESSAGES_PAGE_SIZE: int = 50
MESSAGES_MAX_PAGE_SIZE: int = 200

# Display name used when a sender can no longer be resolved
UNKNOWN_USER_NAME: str = "Unknown"
