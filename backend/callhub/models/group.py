"""
Group and DM Conversation Models

Both entities carry an `active_call_id` pointer naming the call currently
running for them. The call service reads and writes it through the
repositories; it never keeps its own copy.
"""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import List, Optional
import uuid


@dataclass
class Group:
    name: str
    admin_id: str
    member_ids: List[str] = field(default_factory=list)
    description: Optional[str] = None
    active_call_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_ids

    def add_member(self, user_id: str) -> bool:
        """Add a member. Returns False if already present."""
        if user_id in self.member_ids:
            return False
        self.member_ids.append(user_id)
        return True

    def remove_member(self, user_id: str) -> bool:
        if user_id not in self.member_ids:
            return False
        self.member_ids.remove(user_id)
        return True


@dataclass
class DirectMessageConversation:
    participant1_id: str
    participant2_id: str
    active_call_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def participant_ids(self) -> List[str]:
        return [self.participant1_id, self.participant2_id]

    def involves(self, user_id: str) -> bool:
        return user_id in (self.participant1_id, self.participant2_id)

    def other_participant(self, user_id: str) -> str:
        return self.participant2_id if self.participant1_id == user_id else self.participant1_id
