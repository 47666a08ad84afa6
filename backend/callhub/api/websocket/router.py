"""
WebSocket Router - Realtime channel endpoint

Thin routing layer that hands each socket to a ConnectionSession.
"""
from typing import Optional

from fastapi import APIRouter, WebSocket, Query

from callhub.services.session import ConnectionSession

router = APIRouter()


@router.websocket("/ws")
async def ws_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
):
    """
    WebSocket endpoint for presence, signaling and call events.

    Query Parameters:
        token: JWT Token (required; the socket is closed with 1008 otherwise)

    Message Types (JSON envelopes {"type": ..., "data": ...}):
        - ping: answered with pong
        - typing_indicator: relayed to the conversation's members
        - webrtc_offer / webrtc_answer / ice_candidate / call_ended: relayed to toUserId
        - mute_toggle: updates the sender's mute state in a call
    """
    session = ConnectionSession(
        websocket=websocket,
        services=websocket.app.state.services,
        token=token,
    )
    await session.run()
