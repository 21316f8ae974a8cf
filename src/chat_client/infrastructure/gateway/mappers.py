from __future__ import annotations

import logging

from chat_client.application.exceptions import GatewayError
from chat_client.domain.entities.conversation import Conversation
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.user import ChatUser
from chat_client.domain.value_objects.content import (
    AttachmentRef,
    MessageContent,
    attachment_id_of,
    compose,
)
from chat_client.domain.value_objects.enums import ConversationKind, MessageStatus
from chat_client.domain.value_objects.ids import (
    ConversationId,
    MessageId,
    UserId,
    is_temp_message_id,
)
from chat_client.infrastructure.gateway.schemas import (
    AttachmentDto,
    ChatDto,
    ChatMessageDto,
    ChatSummaryDto,
    ChatUserDto,
    SendMessageRequest,
)

logger = logging.getLogger(__name__)


def _default_name(is_group: bool) -> str:
    return "Group chat" if is_group else "Direct chat"


def summary_to_entity(dto: ChatSummaryDto) -> Conversation:
    return Conversation(
        id=ConversationId(dto.chat_id),
        name=dto.name or dto.other_user_name or _default_name(dto.is_group),
        kind=ConversationKind.GROUP if dto.is_group else ConversationKind.DIRECT,
        unread_count=max(dto.unread_count, 0),
        is_online=None,
    )


def chat_to_entity(dto: ChatDto) -> Conversation:
    return Conversation(
        id=ConversationId(dto.id),
        name=dto.name or _default_name(dto.is_group),
        kind=ConversationKind.GROUP if dto.is_group else ConversationKind.DIRECT,
        unread_count=0,
    )


def user_to_entity(dto: ChatUserDto) -> ChatUser:
    return ChatUser(
        id=UserId(dto.id),
        username=dto.username,
        email=dto.email,
        role=dto.role,
    )


def _attachment_to_ref(dto: AttachmentDto | None) -> AttachmentRef | None:
    if dto is None:
        return None
    return AttachmentRef(
        file_name=dto.file_name,
        content_type=dto.content_type,
        size=dto.size,
        attachment_id=dto.attachment_id,
    )


def message_to_entity(
    dto: ChatMessageDto,
    current_user_name: str,
    *,
    fallback_content: MessageContent | None = None,
) -> Message:
    """Map a wire message. Raises GatewayError if it carries no content at all."""
    if is_temp_message_id(dto.id):
        raise GatewayError(f"Server returned a reserved message id: {dto.id}")
    content = compose(dto.text, dto.gif_url, _attachment_to_ref(dto.attachment)) or fallback_content
    if content is None:
        raise GatewayError(f"Message {dto.id} has no content")
    sender_name = dto.sender_user_name or dto.sender_id
    return Message(
        id=MessageId(dto.id),
        conversation_id=ConversationId(dto.chat_id),
        sender_id=dto.sender_id,
        sender_name=sender_name,
        content=content,
        created_at=dto.created_at,
        is_mine=sender_name.lower() == current_user_name.lower(),
        status=MessageStatus.CONFIRMED,
    )


def messages_to_entities(dtos: list[ChatMessageDto], current_user_name: str) -> list[Message]:
    messages: list[Message] = []
    for dto in dtos:
        try:
            messages.append(message_to_entity(dto, current_user_name))
        except GatewayError as exc:
            logger.warning("Skipping message: %s", exc.detail)
    return messages


def content_to_request(content: MessageContent) -> SendMessageRequest:
    return SendMessageRequest(
        text=content.text,
        gif_url=content.gif_url,
        attachment_id=attachment_id_of(content),
    )
