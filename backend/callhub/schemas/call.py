from datetime import datetime
from typing import List, Optional

from callhub.models import CallStatus, CallType
from callhub.schemas.base import CamelModel


class InitiateCallRequest(CamelModel):
    recipient_id: str


class CallParticipantResponse(CamelModel):
    user_id: str
    display_name: str
    joined_at: datetime
    is_muted: bool


class CallResponse(CamelModel):
    id: str
    type: CallType
    initiator_id: str
    group_id: Optional[str] = None
    recipient_id: Optional[str] = None
    participants: List[CallParticipantResponse]
    status: CallStatus
    started_at: datetime
    ended_at: Optional[datetime] = None
