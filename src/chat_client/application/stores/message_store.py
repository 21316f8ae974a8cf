"""Per-conversation message sequences, confirmed and pending."""
from __future__ import annotations

import logging
from typing import Callable

from chat_client.domain.entities.message import Message

logger = logging.getLogger(__name__)


class MessageStore:
    """Ordered message sequence per conversation.

    Records are only ever appended at the tail, replaced in place, or removed.
    """

    def __init__(self) -> None:
        self._sequences: dict[str, list[Message]] = {}
        self._listeners: list[Callable[[str], None]] = []
        self._revision = 0
        # conversation id -> {message id: revision at which a pending record was confirmed}
        self._confirmed: dict[str, dict[str, int]] = {}

    @property
    def revision(self) -> int:
        """Advances on every local confirmation. Capture it before issuing a load."""
        return self._revision

    def messages(self, conversation_id: str) -> tuple[Message, ...]:
        return tuple(self._sequences.get(conversation_id, ()))

    def on_change(self, listener: Callable[[str], None]) -> None:
        """Register a listener called with the id of the changed conversation."""
        self._listeners.append(listener)

    def load(
        self,
        conversation_id: str,
        messages: list[Message],
        *,
        issued_at: int | None = None,
    ) -> None:
        """Replace a conversation's confirmed history.

        Records still pending stay at the tail in their original order so their
        in-flight sends can reconcile against them. So do records confirmed
        locally after ``issued_at`` (the ``revision`` seen when the load was
        issued) that the loaded snapshot predates.
        """
        loaded_ids = {m.id for m in messages}
        confirmed = self._confirmed.get(conversation_id, {})
        for message_id in loaded_ids & confirmed.keys():
            del confirmed[message_id]

        def keep(message: Message) -> bool:
            if message.id in loaded_ids:
                return False
            if message.is_pending:
                return True
            return issued_at is not None and confirmed.get(message.id, -1) > issued_at

        carried = [m for m in self._sequences.get(conversation_id, []) if keep(m)]
        self._sequences[conversation_id] = list(messages) + carried
        self._notify(conversation_id)

    def append(self, message: Message) -> None:
        self._sequences.setdefault(message.conversation_id, []).append(message)
        self._notify(message.conversation_id)

    def replace(self, conversation_id: str, message_id: str, message: Message) -> bool:
        """Swap the record ``message_id`` for ``message`` at the same position.

        If ``message.id`` is already present elsewhere in the sequence the old
        record is dropped instead, so the sequence never holds a duplicate.
        Returns False when ``message_id`` is not found.
        """
        sequence = self._sequences.get(conversation_id, [])
        index = _index_of(sequence, message_id)
        if index is None:
            return False
        if sequence[index].is_pending and not message.is_pending:
            self._revision += 1
            self._confirmed.setdefault(conversation_id, {})[message.id] = self._revision
        if message.id != message_id and _index_of(sequence, message.id) is not None:
            logger.debug("Message %s already present, dropping %s", message.id, message_id)
            del sequence[index]
        else:
            sequence[index] = message
        self._notify(conversation_id)
        return True

    def remove(self, conversation_id: str, message_id: str) -> bool:
        sequence = self._sequences.get(conversation_id, [])
        index = _index_of(sequence, message_id)
        if index is None:
            return False
        del sequence[index]
        self._notify(conversation_id)
        return True

    def clear(self) -> None:
        conversation_ids = list(self._sequences)
        self._sequences.clear()
        self._confirmed.clear()
        for conversation_id in conversation_ids:
            self._notify(conversation_id)

    def _notify(self, conversation_id: str) -> None:
        for listener in self._listeners:
            listener(conversation_id)


def _index_of(sequence: list[Message], message_id: str) -> int | None:
    for i, message in enumerate(sequence):
        if message.id == message_id:
            return i
    return None
