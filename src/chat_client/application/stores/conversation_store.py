"""Local view of the conversation list, unread counters and selection."""
from __future__ import annotations

import logging
from typing import Callable

from chat_client.domain.entities.conversation import Conversation

logger = logging.getLogger(__name__)


class ConversationStore:
    """Sole owner of the conversation list, unread counters and selection."""

    def __init__(self) -> None:
        self._conversations: list[Conversation] = []
        self._selected_id: str | None = None
        self._listeners: list[Callable[[], None]] = []

    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return tuple(self._conversations)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected(self) -> Conversation | None:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def get(self, conversation_id: str) -> Conversation | None:
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def on_change(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def load(self, conversations: list[Conversation]) -> None:
        """Replace the whole set. Selection survives only if still present."""
        self._conversations = list(conversations)
        if self._selected_id is not None and self.get(self._selected_id) is None:
            logger.debug("Selected conversation %s no longer listed", self._selected_id)
            self._selected_id = None
        self._notify()

    def add(self, conversation: Conversation) -> None:
        """Insert a conversation, or replace the one with the same id in place."""
        for i, existing in enumerate(self._conversations):
            if existing.id == conversation.id:
                self._conversations[i] = conversation
                break
        else:
            self._conversations.append(conversation)
        self._notify()

    def select(self, conversation_id: str) -> bool:
        """Select and zero the unread counter locally, before any server ack.

        Returns False (and changes nothing) for an unknown id.
        """
        if self.get(conversation_id) is None:
            return False
        self._selected_id = conversation_id
        self._set_unread(conversation_id, 0)
        self._notify()
        return True

    def apply_unread(self, conversation_id: str, count: int) -> None:
        if self._set_unread(conversation_id, count):
            self._notify()

    def clear(self) -> None:
        self._conversations = []
        self._selected_id = None
        self._notify()

    def _set_unread(self, conversation_id: str, count: int) -> bool:
        for i, conversation in enumerate(self._conversations):
            if conversation.id == conversation_id:
                self._conversations[i] = conversation.with_unread(count)
                return True
        return False

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()
