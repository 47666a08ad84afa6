"""
Call Model - Call Lifecycle and Membership

A call moves RINGING -> ACTIVE -> ENDED (or RINGING -> ENDED). ENDED is
terminal: once `mark_ended` has run, the call is never mutated again.

Participants are kept in join order and are unique by user id.
"""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import List, Optional
import uuid


class CallType(str, Enum):
    DIRECT = "DIRECT"
    GROUP = "GROUP"


class CallStatus(str, Enum):
    RINGING = "RINGING"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


@dataclass
class CallParticipant:
    """Participant in a call"""
    user_id: str
    joined_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_muted: bool = False


@dataclass
class Call:
    """Direct or group call"""
    type: CallType
    initiator_id: str
    status: CallStatus
    recipient_id: Optional[str] = None  # DIRECT only
    group_id: Optional[str] = None  # GROUP only
    participants: List[CallParticipant] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    ended_at: Optional[datetime] = None

    @property
    def is_ended(self) -> bool:
        return self.status == CallStatus.ENDED

    @property
    def participant_ids(self) -> List[str]:
        return [p.user_id for p in self.participants]

    def has_participant(self, user_id: str) -> bool:
        return any(p.user_id == user_id for p in self.participants)

    def get_participant(self, user_id: str) -> Optional[CallParticipant]:
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None

    def add_participant(self, user_id: str) -> bool:
        """Append a participant. Returns False if the user is already in the call."""
        if self.has_participant(user_id):
            return False
        self.participants.append(CallParticipant(user_id=user_id))
        return True

    def remove_participant(self, user_id: str) -> bool:
        before = len(self.participants)
        self.participants = [p for p in self.participants if p.user_id != user_id]
        return len(self.participants) != before

    def involves(self, user_id: str) -> bool:
        """True if the user is a participant or the ringing recipient."""
        return self.has_participant(user_id) or self.recipient_id == user_id

    def mark_ended(self) -> bool:
        """
        Transition to ENDED and stamp the end time.

        Returns:
            True if the call was ended by this invocation, False if it was
            already ENDED.
        """
        if self.is_ended:
            return False
        self.status = CallStatus.ENDED
        self.ended_at = datetime.now(UTC)
        return True
