"""
User Model

Account record held by the user directory.
"""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Optional
import uuid


class UserStatus(str, Enum):
    """Presence status of a user."""
    ONLINE = "ONLINE"
    AWAY = "AWAY"
    OFFLINE = "OFFLINE"
    IN_CALL = "IN_CALL"


@dataclass
class User:
    username: str
    display_name: str
    password_hash: str
    avatar_url: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
