"""
Message Service - Chat messages

Stores, edits and deletes messages. Posting routes `new_message` to the
members of the group or DM it was posted to. Edits and deletes are
restricted to the sender.
"""
from datetime import datetime, UTC
from typing import Optional
import logging

from callhub.config.constants import UNKNOWN_USER_NAME
from callhub.models import Message
from callhub.schemas.chat import MessageResponse, PaginatedMessages
from callhub.schemas.websocket_events import NewMessageNotification
from callhub.services.chat_service import ChatService
from callhub.services.connection import ConnectionManager
from callhub.services.core.repositories import Repositories
from callhub.services.messaging.encoding import encode_new_message

logger = logging.getLogger(__name__)


class MessageNotFoundError(Exception):
    pass


class NotMessageSenderError(Exception):
    pass


class MessageService:
    """Service for posting and paging chat messages."""

    def __init__(
        self,
        repositories: Repositories,
        chat_service: ChatService,
        connection_manager: ConnectionManager,
    ):
        self.repos = repositories
        self.chat_service = chat_service
        self.connection_manager = connection_manager

    async def send_message(
        self,
        sender_id: str,
        content: str,
        group_id: Optional[str] = None,
        dm_id: Optional[str] = None,
    ) -> Message:
        if bool(group_id) == bool(dm_id):
            raise ValueError("A message belongs to exactly one of group_id or dm_id")

        message = self.repos.messages.save(Message(
            sender_id=sender_id,
            content=content,
            group_id=group_id,
            dm_id=dm_id,
        ))

        recipients = self.chat_service.resolve_members(group_id=group_id, dm_id=dm_id)
        frame = encode_new_message(NewMessageNotification(message=self.to_response(message)))
        sent = await self.connection_manager.send_to_many(recipients, frame)
        logger.debug(f"[Messages] {message.id} delivered to {sent}/{len(recipients)} members")
        return message

    def edit_message(self, message_id: str, user_id: str, content: str) -> Message:
        """
        Replace a message's content and stamp `edited_at`.

        Raises:
            MessageNotFoundError: unknown message
            NotMessageSenderError: only the sender may edit
        """
        message = self._require_own_message(message_id, user_id)
        message.content = content
        message.edited_at = datetime.now(UTC)
        logger.debug(f"[Messages] {message_id} edited by {user_id}")
        return message

    def delete_message(self, message_id: str, user_id: str) -> None:
        """
        Remove a message from its conversation's history.

        Raises:
            MessageNotFoundError: unknown message
            NotMessageSenderError: only the sender may delete
        """
        self._require_own_message(message_id, user_id)
        self.repos.messages.delete(message_id)
        logger.debug(f"[Messages] {message_id} deleted by {user_id}")

    def get_message(self, message_id: str) -> Optional[Message]:
        return self.repos.messages.find_by_id(message_id)

    def _require_own_message(self, message_id: str, user_id: str) -> Message:
        message = self.repos.messages.find_by_id(message_id)
        if message is None:
            raise MessageNotFoundError(f"Message {message_id} not found")
        if message.sender_id != user_id:
            raise NotMessageSenderError(f"User {user_id} did not send message {message_id}")
        return message

    def group_history(self, group_id: str, limit: int, offset: int = 0) -> PaginatedMessages:
        messages = self.repos.messages.find_by_group_id(group_id, limit + 1, offset)
        return self._paginate(messages, limit)

    def dm_history(self, dm_id: str, limit: int, offset: int = 0) -> PaginatedMessages:
        messages = self.repos.messages.find_by_dm_id(dm_id, limit + 1, offset)
        return self._paginate(messages, limit)

    def _paginate(self, messages, limit: int) -> PaginatedMessages:
        return PaginatedMessages(
            messages=[self.to_response(m) for m in messages[:limit]],
            has_more=len(messages) > limit,
        )

    def to_response(self, message: Message) -> MessageResponse:
        return MessageResponse(
            id=message.id,
            sender_id=message.sender_id,
            sender_name=self.repos.users.display_name(message.sender_id, UNKNOWN_USER_NAME),
            group_id=message.group_id,
            dm_id=message.dm_id,
            content=message.content,
            created_at=message.created_at,
            edited_at=message.edited_at,
        )
