"""Starting new conversations from the client."""
from __future__ import annotations

import logging

from chat_client.application.dto.session import Session
from chat_client.application.exceptions import AppError
from chat_client.application.ports.gateway import RemoteGateway
from chat_client.application.reporting import ErrorReporter
from chat_client.application.stores.conversation_store import ConversationStore
from chat_client.domain.entities.conversation import Conversation
from chat_client.domain.entities.user import ChatUser
from chat_client.services.search import SearchDebouncer
from chat_client.services.synchronizer import Synchronizer

logger = logging.getLogger(__name__)


class ConversationService:
    def __init__(
        self,
        session: Session,
        gateway: RemoteGateway,
        conversations: ConversationStore,
        synchronizer: Synchronizer,
        reporter: ErrorReporter,
        *,
        search_interval: float,
    ) -> None:
        self._session = session
        self._gateway = gateway
        self._conversations = conversations
        self._synchronizer = synchronizer
        self._reporter = reporter
        self.user_search: SearchDebouncer[ChatUser] = SearchDebouncer(
            self._search_users,
            quiet_interval=search_interval,
            exclude=lambda user: user.is_named(session.user_name),
            on_error=lambda exc: reporter.transient("Failed to search users.", exc),
        )
        self.is_creating_group = False

    async def _search_users(self, query: str) -> list[ChatUser]:
        return await self._gateway.search_users(self._session, query)

    async def start_private_chat(self, user: ChatUser) -> Conversation | None:
        """Create (or reuse) a direct chat with ``user`` and select it."""
        try:
            conversation = await self._gateway.create_private_chat(self._session, user.id)
        except AppError as exc:
            self._reporter.transient("Failed to create private chat.", exc)
            return None
        await self._adopt(conversation)
        self.user_search.clear()
        return conversation

    async def create_group(self, name: str, member_ids: list[str]) -> Conversation | None:
        self.is_creating_group = True
        try:
            conversation = await self._gateway.create_group_chat(self._session, name, member_ids)
        except AppError as exc:
            self._reporter.transient("Failed to create group chat.", exc)
            return None
        finally:
            self.is_creating_group = False
        await self._adopt(conversation)
        return conversation

    async def _adopt(self, conversation: Conversation) -> None:
        """Refresh the list, make sure the new chat is in it, then select it."""
        await self._synchronizer.refresh_conversations()
        if self._conversations.get(conversation.id) is None:
            self._conversations.add(conversation)
        self._synchronizer.select(conversation.id)
        logger.info("Opened %s conversation %s", conversation.kind, conversation.id)
