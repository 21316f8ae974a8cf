from __future__ import annotations

from dataclasses import dataclass, replace

from chat_client.domain.value_objects.enums import ConversationKind
from chat_client.domain.value_objects.ids import ConversationId


@dataclass(frozen=True, slots=True)
class Conversation:
    id: ConversationId
    name: str
    kind: ConversationKind
    unread_count: int = 0
    is_online: bool | None = None  # direct conversations only

    def with_unread(self, count: int) -> Conversation:
        return replace(self, unread_count=max(count, 0))
