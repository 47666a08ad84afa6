"""
Outbound Envelope Encoding

One encoder per outbound event kind. Each encoder takes the payload type that
belongs to its kind and returns the finished frame text, serialized once.
There is no generic "encode anything" entry point: the set of outbound kinds
is closed and listed in `OutboundType`.
"""
from enum import Enum
from typing import Any, Dict

from callhub.config.constants import EMPTY_PAYLOAD
from callhub.schemas.websocket_events import (
    CallInitiatedNotification,
    CallStatusUpdate,
    Envelope,
    NewMessageNotification,
    ParticipantUpdate,
    TypingIndicator,
    UserStatusUpdate,
)


class OutboundType(str, Enum):
    PONG = "pong"
    TYPING_INDICATOR = "typing_indicator"
    NEW_MESSAGE = "new_message"
    USER_STATUS = "user_status"
    CALL_INITIATED = "call_initiated"
    CALL_STATUS = "call_status"
    PARTICIPANT_UPDATE = "participant_update"
    WEBRTC_OFFER = "webrtc_offer"
    WEBRTC_ANSWER = "webrtc_answer"
    ICE_CANDIDATE = "ice_candidate"
    CALL_ENDED = "call_ended"


SIGNAL_TYPES = frozenset({
    OutboundType.WEBRTC_OFFER,
    OutboundType.WEBRTC_ANSWER,
    OutboundType.ICE_CANDIDATE,
    OutboundType.CALL_ENDED,
})


def _frame(kind: OutboundType, data: Any) -> str:
    return Envelope(type=kind.value, data=data).model_dump_json()


def _payload(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def encode_pong() -> str:
    return _frame(OutboundType.PONG, EMPTY_PAYLOAD)


def encode_typing_indicator(indicator: TypingIndicator) -> str:
    return _frame(OutboundType.TYPING_INDICATOR, _payload(indicator))


def encode_new_message(notification: NewMessageNotification) -> str:
    return _frame(OutboundType.NEW_MESSAGE, _payload(notification))


def encode_user_status(update: UserStatusUpdate) -> str:
    return _frame(OutboundType.USER_STATUS, _payload(update))


def encode_call_initiated(notification: CallInitiatedNotification) -> str:
    return _frame(OutboundType.CALL_INITIATED, _payload(notification))


def encode_call_status(update: CallStatusUpdate) -> str:
    return _frame(OutboundType.CALL_STATUS, _payload(update))


def encode_participant_update(update: ParticipantUpdate) -> str:
    return _frame(OutboundType.PARTICIPANT_UPDATE, _payload(update))


def encode_signal(kind: OutboundType, raw_payload: Dict[str, Any]) -> str:
    """
    Re-wrap a relayed WebRTC signal.

    `raw_payload` is the decoded `data` object exactly as the sender supplied
    it; it is embedded unchanged so the `signal` string arrives byte-identical.
    """
    if kind not in SIGNAL_TYPES:
        raise ValueError(f"{kind.value} is not a relayable signal type")
    return _frame(kind, raw_payload)
