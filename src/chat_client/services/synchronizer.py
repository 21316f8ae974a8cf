"""Keeps the local stores in step with the remote service.

Every background load carries the context it was issued for (list
generation, selected conversation id). A result is applied only if that
context is still current when it arrives; otherwise it is dropped.
"""
from __future__ import annotations

import asyncio
import logging
from enum import StrEnum

from chat_client.application.dto.session import Session
from chat_client.application.exceptions import AppError
from chat_client.application.ports.gateway import RemoteGateway
from chat_client.application.reporting import ErrorReporter
from chat_client.application.stores.conversation_store import ConversationStore
from chat_client.application.stores.message_store import MessageStore

logger = logging.getLogger(__name__)


class CycleState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


class Synchronizer:
    def __init__(
        self,
        session: Session,
        gateway: RemoteGateway,
        conversations: ConversationStore,
        messages: MessageStore,
        reporter: ErrorReporter,
        *,
        page_size: int = 50,
        auto_select_first: bool = False,
    ) -> None:
        self._session = session
        self._gateway = gateway
        self._conversations = conversations
        self._messages = messages
        self._reporter = reporter
        self._page_size = page_size
        self._auto_select_first = auto_select_first

        self.list_state = CycleState.IDLE
        self.message_state = CycleState.IDLE
        self._list_generation = 0
        self._message_generation = 0
        self._loaded_token: str | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def session(self) -> Session:
        return self._session

    # -- conversation list ---------------------------------------------------

    async def start(self) -> None:
        """Load the conversation list once per session token."""
        if self._loaded_token == self._session.token:
            return
        self._loaded_token = self._session.token
        await self.refresh_conversations()

    def switch_session(self, session: Session) -> None:
        """Adopt a new token. In-flight loads for the old one become stale."""
        self._session = session
        self._list_generation += 1
        self._loaded_token = None
        self.list_state = CycleState.IDLE

    async def refresh_conversations(self) -> bool:
        """Reload the list (also the explicit retry). Returns True if applied."""
        self._list_generation += 1
        generation = self._list_generation
        session = self._session
        self.list_state = CycleState.LOADING
        try:
            conversations = await self._gateway.list_conversations(session)
        except AppError as exc:
            if generation != self._list_generation:
                return False
            self.list_state = CycleState.ERRORED
            self._reporter.transient("Failed to load chats.", exc)
            return False

        if generation != self._list_generation or session is not self._session:
            logger.debug("Discarding stale conversation list (generation=%d)", generation)
            return False

        self._conversations.load(conversations)
        self.list_state = CycleState.READY
        logger.info("Loaded %d conversations", len(conversations))

        if (
            self._auto_select_first
            and self._conversations.selected_id is None
            and conversations
        ):
            self.select(conversations[0].id)
        return True

    # -- selection and messages ----------------------------------------------

    def select(self, conversation_id: str) -> asyncio.Task[None] | None:
        """Select a conversation and start its message load.

        The unread counter is zeroed synchronously. Re-selecting the current
        conversation, or selecting an unknown one, issues no network call.
        """
        if conversation_id == self._conversations.selected_id:
            self._conversations.select(conversation_id)
            return None
        if not self._conversations.select(conversation_id):
            logger.debug("Ignoring selection of unknown conversation %s", conversation_id)
            return None
        self._message_generation += 1
        return self._spawn(
            self._load_messages(conversation_id, self._message_generation, self._messages.revision),
            f"load-messages-{conversation_id}",
        )

    async def reload_messages(self) -> None:
        """Reload the selected conversation's messages (explicit retry)."""
        conversation_id = self._conversations.selected_id
        if conversation_id is not None:
            self._message_generation += 1
            await self._load_messages(
                conversation_id, self._message_generation, self._messages.revision,
            )

    def _is_current_load(self, conversation_id: str, generation: int) -> bool:
        return (
            generation == self._message_generation
            and self._conversations.selected_id == conversation_id
        )

    async def _load_messages(self, conversation_id: str, generation: int, issued_at: int) -> None:
        session = self._session
        self.message_state = CycleState.LOADING
        try:
            messages = await self._gateway.list_messages(
                session, conversation_id, skip=0, take=self._page_size,
            )
        except AppError as exc:
            if not self._is_current_load(conversation_id, generation):
                logger.debug("Ignoring failed superseded load for conversation %s", conversation_id)
                return
            self.message_state = CycleState.ERRORED
            self._reporter.transient("Failed to load messages.", exc)
            return

        if not self._is_current_load(conversation_id, generation):
            logger.debug("Discarding stale messages for conversation %s", conversation_id)
            return

        self._messages.load(conversation_id, messages, issued_at=issued_at)
        self.message_state = CycleState.READY
        self._spawn(self._acknowledge_read(session, conversation_id), f"mark-read-{conversation_id}")

    async def _acknowledge_read(self, session: Session, conversation_id: str) -> None:
        # The local unread-zero stays even if this fails; the next list
        # refresh brings the server's count back.
        try:
            await self._gateway.mark_read(session, conversation_id)
        except AppError as exc:
            self._reporter.background(f"Failed to mark chat {conversation_id} read", exc)

    # -- task bookkeeping ----------------------------------------------------

    def _spawn(self, coro, name: str) -> asyncio.Task[None]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background task %s failed", task.get_name(), exc_info=task.exception())

    async def wait_idle(self) -> None:
        """Wait for all background loads and read acknowledgements to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
