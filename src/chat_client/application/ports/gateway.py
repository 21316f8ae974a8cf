from __future__ import annotations

from typing import Protocol

from chat_client.application.dto.session import Session
from chat_client.application.dto.upload import PresignedUpload
from chat_client.domain.entities.conversation import Conversation
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.user import ChatUser
from chat_client.domain.value_objects.content import MessageContent


class RemoteGateway(Protocol):
    """Backend conversation/message/user API.

    Every call takes the session explicitly; implementations must not keep
    the token as shared state between calls.
    """

    async def list_conversations(self, session: Session) -> list[Conversation]: ...

    async def list_messages(
        self,
        session: Session,
        conversation_id: str,
        *,
        skip: int = 0,
        take: int = 50,
    ) -> list[Message]: ...

    async def send_message(
        self,
        session: Session,
        conversation_id: str,
        content: MessageContent,
    ) -> Message:
        """Create a message. ``content`` attachments must already carry an id."""
        ...

    async def mark_read(self, session: Session, conversation_id: str) -> None: ...

    async def search_users(self, session: Session, query: str) -> list[ChatUser]: ...

    async def create_private_chat(self, session: Session, target_user_id: str) -> Conversation: ...

    async def create_group_chat(
        self, session: Session, name: str, member_ids: list[str],
    ) -> Conversation: ...

    async def list_members(self, session: Session, conversation_id: str) -> list[ChatUser]: ...

    async def add_member(self, session: Session, conversation_id: str, user_id: str) -> None: ...

    async def remove_member(self, session: Session, conversation_id: str, user_id: str) -> None: ...

    async def presign_upload(
        self,
        session: Session,
        conversation_id: str,
        *,
        file_name: str,
        content_type: str,
        size: int,
    ) -> PresignedUpload: ...
