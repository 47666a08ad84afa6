from datetime import datetime
from typing import List, Optional

from pydantic import Field

from callhub.models import UserStatus
from callhub.schemas.base import CamelModel


# =============================================================================
# Auth / Users
# =============================================================================

class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6)
    display_name: str = Field(..., min_length=1, max_length=128)


class LoginRequest(CamelModel):
    username: str
    password: str


class UpdateUserRequest(CamelModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=128)
    avatar_url: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    status: UserStatus
    current_call_id: Optional[str] = None
    created_at: datetime


class AuthResponse(CamelModel):
    token: str
    user: UserResponse


# =============================================================================
# Groups / DMs
# =============================================================================

class CreateGroupRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)


class AddMemberRequest(CamelModel):
    user_id: str


class GroupResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    admin_id: str
    member_ids: List[str]
    active_call_id: Optional[str] = None
    created_at: datetime


class CreateDMRequest(CamelModel):
    recipient_id: str


class DMConversationResponse(CamelModel):
    id: str
    participant1_id: str
    participant2_id: str
    other_user: UserResponse
    active_call_id: Optional[str] = None
    created_at: datetime


# =============================================================================
# Messages
# =============================================================================

class SendMessageRequest(CamelModel):
    content: str = Field(..., min_length=1, max_length=4000)


class MessageResponse(CamelModel):
    id: str
    sender_id: str
    sender_name: str
    group_id: Optional[str] = None
    dm_id: Optional[str] = None
    content: str
    created_at: datetime
    edited_at: Optional[datetime] = None


class PaginatedMessages(CamelModel):
    messages: List[MessageResponse]
    has_more: bool
