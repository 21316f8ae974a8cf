"""Per-session wiring of stores, synchronizer, send pipeline and services."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from chat_client.application.dto.session import Session
from chat_client.application.dto.upload import OutgoingFile
from chat_client.application.exceptions import SessionExpiredError
from chat_client.application.ports.clock import Clock
from chat_client.application.ports.gateway import RemoteGateway
from chat_client.application.ports.storage import ObjectStorage, SessionStore
from chat_client.application.reporting import ErrorBanner, ErrorReporter
from chat_client.application.stores.conversation_store import ConversationStore
from chat_client.application.stores.message_store import MessageStore
from chat_client.config import Settings, settings as default_settings
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.user import ChatUser
from chat_client.infrastructure.auth.token import open_session
from chat_client.infrastructure.gateway.http_gateway import HttpGateway
from chat_client.infrastructure.session.memory_store import InMemorySessionStore
from chat_client.infrastructure.session.redis_store import RedisSessionStore
from chat_client.infrastructure.storage.presigned_put import PresignedPutStorage
from chat_client.services.attachments import AttachmentUploader
from chat_client.services.conversation_service import ConversationService
from chat_client.services.member_service import MemberRoster
from chat_client.services.send_pipeline import SendPipeline
from chat_client.services.synchronizer import Synchronizer

logger = logging.getLogger(__name__)


class ChatClient:
    """Everything one signed-in session needs. Discard it on logout."""

    def __init__(
        self,
        session: Session,
        gateway: RemoteGateway,
        storage: ObjectStorage,
        session_store: SessionStore,
        *,
        settings: Settings,
        clock: Clock | None = None,
    ) -> None:
        self.session = session
        self._session_store = session_store
        self._owned: list[Any] = []
        self._background: set[asyncio.Task[None]] = set()
        self.is_active = True

        self.banner = ErrorBanner()
        self.reporter = ErrorReporter(self.banner)
        self.reporter.on_session_expired(self._on_session_expired)

        self.conversations = ConversationStore()
        self.messages = MessageStore()
        self.synchronizer = Synchronizer(
            session,
            gateway,
            self.conversations,
            self.messages,
            self.reporter,
            page_size=settings.MESSAGE_PAGE_SIZE,
            auto_select_first=settings.AUTO_SELECT_FIRST_CONVERSATION,
        )
        self.sender = SendPipeline(
            session,
            gateway,
            self.messages,
            self.reporter,
            AttachmentUploader(gateway, storage),
            clock,
        )
        self.chats = ConversationService(
            session,
            gateway,
            self.conversations,
            self.synchronizer,
            self.reporter,
            search_interval=settings.SEARCH_DEBOUNCE_SECONDS,
        )
        self.members = MemberRoster(
            session,
            gateway,
            self.synchronizer,
            self.reporter,
            search_interval=settings.SEARCH_DEBOUNCE_SECONDS,
        )

    @property
    def selected_messages(self) -> tuple[Message, ...]:
        selected_id = self.conversations.selected_id
        if selected_id is None:
            return ()
        return self.messages.messages(selected_id)

    async def start(self) -> None:
        await self._session_store.save(self.session)
        await self.synchronizer.start()

    def select(self, conversation_id: str) -> asyncio.Task[None] | None:
        return self.synchronizer.select(conversation_id)

    async def send(
        self,
        text: str | None = None,
        *,
        gif_url: str | None = None,
        attachment_id: str | None = None,
        file: OutgoingFile | None = None,
    ) -> Message | None:
        """Send to the selected conversation. No-op without a selection."""
        conversation_id = self.conversations.selected_id
        if conversation_id is None:
            return None
        return await self.sender.submit(
            conversation_id,
            text=text,
            gif_url=gif_url,
            attachment_id=attachment_id,
            file=file,
        )

    async def search_users(self, text: str) -> list[ChatUser] | None:
        return await self.chats.user_search.query(text)

    async def logout(self) -> None:
        self.is_active = False
        await self.synchronizer.aclose()
        await self._session_store.clear()
        self.conversations.clear()
        self.messages.clear()
        await self.aclose()
        logger.info("Logged out %s", self.session.user_name)

    def own(self, resource: Any) -> None:
        """Close ``resource`` (anything with ``aclose``) together with this client."""
        self._owned.append(resource)

    async def aclose(self) -> None:
        await self.synchronizer.aclose()
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        for resource in self._owned:
            await resource.aclose()
        self._owned.clear()

    def _on_session_expired(self, exc: SessionExpiredError) -> None:
        self.is_active = False
        self.conversations.clear()
        self.messages.clear()
        task = asyncio.get_running_loop().create_task(self._session_store.clear())
        self._background.add(task)
        task.add_done_callback(self._background.discard)


def create_session_store(settings: Settings) -> SessionStore:
    if settings.SESSION_BACKEND == "redis":
        return RedisSessionStore.from_url(settings.REDIS_URL, settings.SESSION_KEY_PREFIX)
    return InMemorySessionStore()


def create_client(
    session: Session,
    *,
    settings: Settings = default_settings,
    gateway: RemoteGateway | None = None,
    storage: ObjectStorage | None = None,
    session_store: SessionStore | None = None,
    clock: Clock | None = None,
) -> ChatClient:
    owned: list[Any] = []
    if gateway is None:
        gateway = HttpGateway.from_settings(settings)
        owned.append(gateway)
    if storage is None:
        storage = PresignedPutStorage(httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS))
        owned.append(storage)
    if session_store is None:
        session_store = create_session_store(settings)
        if isinstance(session_store, RedisSessionStore):
            owned.append(session_store)

    client = ChatClient(
        session, gateway, storage, session_store, settings=settings, clock=clock,
    )
    for resource in owned:
        client.own(resource)
    return client


async def restore_session(session_store: SessionStore) -> Session | None:
    """Load the persisted session, dropping it if the token is no longer usable."""
    stored = await session_store.load()
    if stored is None:
        return None
    try:
        return open_session(stored.token, stored.user_name)
    except SessionExpiredError as exc:
        logger.info("Discarding persisted session: %s", exc.detail)
        await session_store.clear()
        return None
