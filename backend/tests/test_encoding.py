import json

import pytest

from callhub.models import CallStatus, UserStatus
from callhub.schemas.websocket_events import CallStatusUpdate, ParticipantUpdate, UserStatusUpdate
from callhub.services.messaging.encoding import (
    OutboundType,
    encode_call_status,
    encode_participant_update,
    encode_pong,
    encode_signal,
    encode_user_status,
)


def test_pong_frame_is_exact():
    assert encode_pong() == '{"type":"pong","data":""}'


def test_payload_is_embedded_once_with_camel_case_keys():
    frame = encode_call_status(CallStatusUpdate(call_id="c1", status=CallStatus.ACTIVE))

    decoded = json.loads(frame)
    assert decoded == {"type": "call_status", "data": {"callId": "c1", "status": "ACTIVE"}}
    assert isinstance(decoded["data"], dict)


def test_participant_update_keeps_null_mute_flag():
    frame = encode_participant_update(ParticipantUpdate(
        call_id="c1", user_id="u1", user_name="Una", action="joined",
    ))

    assert json.loads(frame)["data"] == {
        "callId": "c1", "userId": "u1", "userName": "Una", "action": "joined", "isMuted": None,
    }


def test_user_status_frame():
    frame = encode_user_status(UserStatusUpdate(user_id="u1", status=UserStatus.IN_CALL))
    assert json.loads(frame) == {"type": "user_status", "data": {"userId": "u1", "status": "IN_CALL"}}


def test_encode_signal_only_accepts_signal_kinds():
    with pytest.raises(ValueError):
        encode_signal(OutboundType.CALL_STATUS, {"toUserId": "u2"})
