"""Group membership for the selected group conversation."""
from __future__ import annotations

import logging

from chat_client.application.dto.session import Session
from chat_client.application.exceptions import AppError
from chat_client.application.ports.gateway import RemoteGateway
from chat_client.application.reporting import ErrorReporter
from chat_client.domain.entities.user import ChatUser
from chat_client.services.search import SearchDebouncer
from chat_client.services.synchronizer import Synchronizer

logger = logging.getLogger(__name__)


class MemberRoster:
    """Members of one group chat plus the add-member search.

    Loads are tagged with the chat they were issued for, so switching groups
    while a load is in flight never shows the previous group's members.
    """

    def __init__(
        self,
        session: Session,
        gateway: RemoteGateway,
        synchronizer: Synchronizer,
        reporter: ErrorReporter,
        *,
        search_interval: float,
    ) -> None:
        self._session = session
        self._gateway = gateway
        self._synchronizer = synchronizer
        self._reporter = reporter
        self.conversation_id: str | None = None
        self.members: list[ChatUser] = []
        self.is_loading = False
        self.search: SearchDebouncer[ChatUser] = SearchDebouncer(
            self._search_users,
            quiet_interval=search_interval,
            exclude=self._is_excluded,
            on_error=lambda exc: reporter.transient("Failed to search users.", exc),
        )

    @property
    def member_count(self) -> int:
        return len(self.members)

    def _is_excluded(self, user: ChatUser) -> bool:
        return user.is_named(self._session.user_name) or any(m.id == user.id for m in self.members)

    async def _search_users(self, query: str) -> list[ChatUser]:
        return await self._gateway.search_users(self._session, query)

    async def load(self, conversation_id: str) -> list[ChatUser] | None:
        if conversation_id != self.conversation_id:
            self.members = []
            self.search.clear()
        self.conversation_id = conversation_id
        self.is_loading = True
        try:
            members = await self._gateway.list_members(self._session, conversation_id)
        except AppError as exc:
            if self.conversation_id == conversation_id:
                self.is_loading = False
                self._reporter.transient("Failed to load members.", exc)
            return None

        if self.conversation_id != conversation_id:
            logger.debug("Discarding stale members for conversation %s", conversation_id)
            return None
        self.is_loading = False
        self.members = members
        return self.members

    async def add(self, user: ChatUser) -> bool:
        conversation_id = self.conversation_id
        if conversation_id is None:
            return False
        try:
            await self._gateway.add_member(self._session, conversation_id, user.id)
        except AppError as exc:
            self._reporter.transient("Failed to add member.", exc)
            return False
        if self.conversation_id == conversation_id and all(m.id != user.id for m in self.members):
            self.members.append(user)
        self.search.clear()
        await self._synchronizer.refresh_conversations()
        return True

    async def remove(self, member_id: str) -> bool:
        conversation_id = self.conversation_id
        if conversation_id is None:
            return False
        if not member_id:
            logger.error("remove called with an empty member id")
            self._reporter.banner.show("Invalid member id")
            return False
        try:
            await self._gateway.remove_member(self._session, conversation_id, member_id)
        except AppError as exc:
            self._reporter.transient("Failed to remove member.", exc)
            return False
        if self.conversation_id == conversation_id:
            self.members = [m for m in self.members if m.id != member_id]
        await self._synchronizer.refresh_conversations()
        return True
