"""
Chat Service - Groups and DM conversations

Membership lookups here are also what the message router uses to decide who
receives a typing indicator or a new message.
"""
from typing import List, Optional
import logging

from callhub.models import DirectMessageConversation, Group
from callhub.schemas.chat import DMConversationResponse, GroupResponse
from callhub.services.core.repositories import Repositories
from callhub.services.user_service import UserService

logger = logging.getLogger(__name__)


class GroupInCallError(Exception):
    pass


class ChatService:
    """Service for groups, DM conversations and membership resolution."""

    def __init__(self, repositories: Repositories, user_service: UserService):
        self.repos = repositories
        self.user_service = user_service

    # === Groups ===

    def create_group(
        self,
        name: str,
        admin_id: str,
        member_ids: List[str],
        description: Optional[str] = None,
    ) -> Group:
        # Admin first, then the requested members in order, without duplicates
        members = list(dict.fromkeys([admin_id, *member_ids]))
        group = Group(name=name, admin_id=admin_id, member_ids=members, description=description)
        logger.info(f"[Chat] Group {group.id} created by {admin_id} with {len(members)} members")
        return self.repos.groups.save(group)

    def get_group(self, group_id: str) -> Optional[Group]:
        return self.repos.groups.find_by_id(group_id)

    def groups_for_user(self, user_id: str) -> List[Group]:
        return self.repos.groups.find_by_user_id(user_id)

    def add_member(self, group_id: str, user_id: str) -> Optional[Group]:
        group = self.repos.groups.find_by_id(group_id)
        if group is None:
            return None
        group.add_member(user_id)
        return group

    def remove_member(self, group_id: str, user_id: str) -> Optional[Group]:
        group = self.repos.groups.find_by_id(group_id)
        if group is None:
            return None
        group.remove_member(user_id)
        return group

    def delete_group(self, group_id: str) -> bool:
        """
        Delete a group and its message history.

        Raises:
            GroupInCallError: the group has a call running; end it first
        """
        group = self.repos.groups.find_by_id(group_id)
        if group is None:
            return False
        if group.active_call_id is not None:
            raise GroupInCallError(f"Group {group_id} has active call {group.active_call_id}")
        self.repos.groups.delete(group_id)
        purged = self.repos.messages.delete_by_group_id(group_id)
        logger.info(f"[Chat] Group {group_id} deleted ({purged} messages removed)")
        return True

    # === DMs ===

    def create_or_get_dm(self, user1_id: str, user2_id: str) -> DirectMessageConversation:
        return self.repos.dms.create_or_get(user1_id, user2_id)

    def get_dm(self, dm_id: str) -> Optional[DirectMessageConversation]:
        return self.repos.dms.find_by_id(dm_id)

    def dms_for_user(self, user_id: str) -> List[DirectMessageConversation]:
        return self.repos.dms.find_by_user_id(user_id)

    # === Recipient resolution ===

    def resolve_members(self, group_id: Optional[str] = None, dm_id: Optional[str] = None) -> List[str]:
        """
        User ids interested in a group or DM conversation.

        The group is tried first; an unknown group falls through to the DM.
        Returns an empty list when neither conversation exists.
        """
        if group_id:
            group = self.repos.groups.find_by_id(group_id)
            if group is not None:
                return list(group.member_ids)
        if dm_id:
            dm = self.repos.dms.find_by_id(dm_id)
            return dm.participant_ids if dm else []
        return []

    # === Responses ===

    def group_response(self, group: Group) -> GroupResponse:
        return GroupResponse(
            id=group.id,
            name=group.name,
            description=group.description,
            admin_id=group.admin_id,
            member_ids=list(group.member_ids),
            active_call_id=group.active_call_id,
            created_at=group.created_at,
        )

    def dm_response(self, dm: DirectMessageConversation, current_user_id: str) -> Optional[DMConversationResponse]:
        other = self.user_service.get_by_id(dm.other_participant(current_user_id))
        if other is None:
            return None
        return DMConversationResponse(
            id=dm.id,
            participant1_id=dm.participant1_id,
            participant2_id=dm.participant2_id,
            other_user=self.user_service.to_response(other),
            active_call_id=dm.active_call_id,
            created_at=dm.created_at,
        )
