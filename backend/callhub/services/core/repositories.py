"""
Repository Layer - Keyed in-memory stores.

Every repository method is synchronous: the stores are plain dictionaries and
never suspend, so a caller holding a lock can combine several reads and writes
into one atomic step.

Usage:
    repos = Repositories()
    group = repos.groups.find_by_id(group_id)
    repos.groups.set_active_call(group_id, call.id)
"""

import logging
from typing import Dict, List, Optional, Set

from callhub.models import (
    Call,
    DirectMessageConversation,
    Group,
    Message,
    User,
)

logger = logging.getLogger(__name__)


class UserRepository:
    """User directory keyed by id, with a username index."""

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._by_username: Dict[str, str] = {}

    def save(self, user: User) -> User:
        self._users[user.id] = user
        self._by_username[user.username] = user.id
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        user_id = self._by_username.get(username)
        return self._users.get(user_id) if user_id else None

    def find_all(self) -> List[User]:
        return list(self._users.values())

    def display_name(self, user_id: str, default: str) -> str:
        user = self._users.get(user_id)
        return user.display_name if user else default


class GroupRepository:
    """Groups keyed by id."""

    def __init__(self):
        self._groups: Dict[str, Group] = {}

    def save(self, group: Group) -> Group:
        self._groups[group.id] = group
        return group

    def find_by_id(self, group_id: str) -> Optional[Group]:
        return self._groups.get(group_id)

    def find_by_user_id(self, user_id: str) -> List[Group]:
        return [g for g in self._groups.values() if g.is_member(user_id)]

    def delete(self, group_id: str) -> bool:
        return self._groups.pop(group_id, None) is not None

    def get_active_call(self, group_id: str) -> Optional[str]:
        group = self._groups.get(group_id)
        return group.active_call_id if group else None

    def set_active_call(self, group_id: str, call_id: Optional[str]) -> bool:
        group = self._groups.get(group_id)
        if not group:
            logger.warning(f"[Repo] set_active_call on unknown group {group_id}")
            return False
        group.active_call_id = call_id
        return True


class DMRepository:
    """DM conversations keyed by id; one conversation per unordered user pair."""

    def __init__(self):
        self._conversations: Dict[str, DirectMessageConversation] = {}
        self._user_conversations: Dict[str, Set[str]] = {}

    def save(self, dm: DirectMessageConversation) -> DirectMessageConversation:
        self._conversations[dm.id] = dm
        self._user_conversations.setdefault(dm.participant1_id, set()).add(dm.id)
        self._user_conversations.setdefault(dm.participant2_id, set()).add(dm.id)
        return dm

    def find_by_id(self, dm_id: str) -> Optional[DirectMessageConversation]:
        return self._conversations.get(dm_id)

    def find_by_participants(self, user1_id: str, user2_id: str) -> Optional[DirectMessageConversation]:
        for dm_id in self._user_conversations.get(user1_id, ()):
            dm = self._conversations[dm_id]
            if dm.involves(user2_id):
                return dm
        return None

    def find_by_user_id(self, user_id: str) -> List[DirectMessageConversation]:
        return [self._conversations[i] for i in self._user_conversations.get(user_id, ())]

    def create_or_get(self, user1_id: str, user2_id: str) -> DirectMessageConversation:
        existing = self.find_by_participants(user1_id, user2_id)
        if existing:
            return existing
        return self.save(DirectMessageConversation(participant1_id=user1_id, participant2_id=user2_id))

    def get_active_call(self, dm_id: str) -> Optional[str]:
        dm = self._conversations.get(dm_id)
        return dm.active_call_id if dm else None

    def set_active_call(self, dm_id: str, call_id: Optional[str]) -> bool:
        dm = self._conversations.get(dm_id)
        if not dm:
            logger.warning(f"[Repo] set_active_call on unknown DM {dm_id}")
            return False
        dm.active_call_id = call_id
        return True


class MessageRepository:
    """Messages keyed by id, indexed by group and DM in posting order."""

    def __init__(self):
        self._messages: Dict[str, Message] = {}
        self._by_group: Dict[str, List[str]] = {}
        self._by_dm: Dict[str, List[str]] = {}

    def save(self, message: Message) -> Message:
        self._messages[message.id] = message
        if message.group_id:
            self._by_group.setdefault(message.group_id, []).append(message.id)
        if message.dm_id:
            self._by_dm.setdefault(message.dm_id, []).append(message.id)
        return message

    def find_by_id(self, message_id: str) -> Optional[Message]:
        return self._messages.get(message_id)

    def delete(self, message_id: str) -> bool:
        message = self._messages.pop(message_id, None)
        if message is None:
            return False
        if message.group_id:
            self._by_group[message.group_id].remove(message_id)
        if message.dm_id:
            self._by_dm[message.dm_id].remove(message_id)
        return True

    def delete_by_group_id(self, group_id: str) -> int:
        ids = self._by_group.pop(group_id, [])
        for message_id in ids:
            self._messages.pop(message_id, None)
        return len(ids)

    def find_by_group_id(self, group_id: str, limit: int, offset: int = 0) -> List[Message]:
        return self._page(self._by_group.get(group_id, []), limit, offset)

    def find_by_dm_id(self, dm_id: str, limit: int, offset: int = 0) -> List[Message]:
        return self._page(self._by_dm.get(dm_id, []), limit, offset)

    def _page(self, ids: List[str], limit: int, offset: int) -> List[Message]:
        # Newest first
        ordered = list(reversed(ids))
        return [self._messages[i] for i in ordered[offset:offset + limit]]


class CallRepository:
    """Call table keyed by call id."""

    def __init__(self):
        self._calls: Dict[str, Call] = {}

    def save(self, call: Call) -> Call:
        self._calls[call.id] = call
        return call

    def find_by_id(self, call_id: str) -> Optional[Call]:
        return self._calls.get(call_id)

    def find_active_by_user_id(self, user_id: str) -> Optional[Call]:
        """Return a non-ENDED call the user participates in or is being rung for."""
        for call in self._calls.values():
            if not call.is_ended and call.involves(user_id):
                return call
        return None

    def count_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for call in self._calls.values():
            counts[call.status.value] = counts.get(call.status.value, 0) + 1
        return counts


class Repositories:
    """Bundle of all stores, constructed once per application."""

    def __init__(self):
        self.users = UserRepository()
        self.groups = GroupRepository()
        self.dms = DMRepository()
        self.messages = MessageRepository()
        self.calls = CallRepository()
