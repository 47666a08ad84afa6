"""
Message Model

A chat message posted to either a group or a DM conversation.
"""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Optional
import uuid


@dataclass
class Message:
    sender_id: str
    content: str
    group_id: Optional[str] = None
    dm_id: Optional[str] = None
    edited_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
