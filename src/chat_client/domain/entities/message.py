from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from chat_client.domain.value_objects.content import MessageContent
from chat_client.domain.value_objects.enums import MessageStatus
from chat_client.domain.value_objects.ids import ConversationId, MessageId


@dataclass(frozen=True, slots=True)
class Message:
    id: MessageId
    conversation_id: ConversationId
    sender_id: str
    sender_name: str
    content: MessageContent
    created_at: datetime
    is_mine: bool
    status: MessageStatus = MessageStatus.CONFIRMED

    @property
    def is_pending(self) -> bool:
        return self.status == MessageStatus.PENDING

    def with_status(self, status: MessageStatus) -> Message:
        return replace(self, status=status)
