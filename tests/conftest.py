"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest

from chat_client.application.dto.session import Session
from chat_client.application.dto.upload import PresignedUpload
from chat_client.application.exceptions import AppError, GatewayError, UploadError
from chat_client.application.reporting import ErrorBanner, ErrorReporter
from chat_client.application.stores.conversation_store import ConversationStore
from chat_client.application.stores.message_store import MessageStore
from chat_client.domain.entities.conversation import Conversation
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.user import ChatUser
from chat_client.domain.value_objects.content import MessageContent, Text
from chat_client.domain.value_objects.enums import ConversationKind, MessageStatus
from chat_client.domain.value_objects.ids import ConversationId, MessageId, UserId
from chat_client.services.attachments import AttachmentUploader
from chat_client.services.send_pipeline import SendPipeline
from chat_client.services.synchronizer import Synchronizer

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session() -> Session:
    return Session(token="token-alice", user_name="alice")


def make_conversation(
    conversation_id: str = "c1",
    *,
    unread: int = 0,
    kind: ConversationKind = ConversationKind.GROUP,
    name: str | None = None,
) -> Conversation:
    return Conversation(
        id=ConversationId(conversation_id),
        name=name or f"Chat {conversation_id}",
        kind=kind,
        unread_count=unread,
    )


def make_message(
    message_id: str,
    *,
    conversation_id: str = "c1",
    text: str = "hello",
    sender: str = "bob",
    is_mine: bool = False,
) -> Message:
    return Message(
        id=MessageId(message_id),
        conversation_id=ConversationId(conversation_id),
        sender_id=sender,
        sender_name=sender,
        content=Text(text),
        created_at=FIXED_NOW,
        is_mine=is_mine,
        status=MessageStatus.CONFIRMED,
    )


def make_user(user_id: str, username: str | None = None) -> ChatUser:
    return ChatUser(id=UserId(user_id), username=username or user_id, email=None, role="User")


class FixedClock:
    def now(self) -> datetime:
        return FIXED_NOW


@dataclass
class FakeGateway:
    """In-memory RemoteGateway.

    ``gates`` holds events a call waits on before answering, keyed by
    ``"<op>:<first-arg>"`` or ``"<op>"``. ``failures`` maps the same keys to
    the exception the call raises.
    """

    conversations: list[Conversation] = field(default_factory=list)
    messages: dict[str, list[Message]] = field(default_factory=dict)
    users: list[ChatUser] = field(default_factory=list)
    members: dict[str, list[ChatUser]] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    failures: dict[str, AppError] = field(default_factory=dict)
    message_ids: list[str] = field(default_factory=list)
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    sent: list[tuple[str, MessageContent]] = field(default_factory=list)
    _counter: itertools.count = field(default_factory=lambda: itertools.count(1))

    def ops(self, op: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == op]

    async def _enter(self, op: str, session: Session, *args: Any) -> None:
        self.calls.append((op, session.token, *args))
        keys = [f"{op}:{args[0]}", op] if args else [op]
        for key in keys:
            gate = self.gates.get(key)
            if gate is not None:
                await gate.wait()
                break
        for key in keys:
            exc = self.failures.get(key)
            if exc is not None:
                raise exc

    async def list_conversations(self, session: Session) -> list[Conversation]:
        await self._enter("list_conversations", session)
        return list(self.conversations)

    async def list_messages(
        self, session: Session, conversation_id: str, *, skip: int = 0, take: int = 50,
    ) -> list[Message]:
        await self._enter("list_messages", session, conversation_id)
        return list(self.messages.get(conversation_id, []))[skip:skip + take]

    async def send_message(
        self, session: Session, conversation_id: str, content: MessageContent,
    ) -> Message:
        await self._enter("send_message", session, conversation_id)
        self.sent.append((conversation_id, content))
        message_id = self.message_ids.pop(0) if self.message_ids else f"m{next(self._counter)}"
        return Message(
            id=MessageId(message_id),
            conversation_id=ConversationId(conversation_id),
            sender_id="user-alice",
            sender_name=session.user_name,
            content=content,
            created_at=FIXED_NOW,
            is_mine=True,
            status=MessageStatus.CONFIRMED,
        )

    async def mark_read(self, session: Session, conversation_id: str) -> None:
        await self._enter("mark_read", session, conversation_id)

    async def search_users(self, session: Session, query: str) -> list[ChatUser]:
        await self._enter("search_users", session, query)
        return [u for u in self.users if query.lower() in u.username.lower()]

    async def create_private_chat(self, session: Session, target_user_id: str) -> Conversation:
        await self._enter("create_private_chat", session, target_user_id)
        return make_conversation(f"dm-{target_user_id}", kind=ConversationKind.DIRECT)

    async def create_group_chat(
        self, session: Session, name: str, member_ids: list[str],
    ) -> Conversation:
        await self._enter("create_group_chat", session, name, tuple(member_ids))
        return make_conversation(f"group-{name}", name=name)

    async def list_members(self, session: Session, conversation_id: str) -> list[ChatUser]:
        await self._enter("list_members", session, conversation_id)
        return list(self.members.get(conversation_id, []))

    async def add_member(self, session: Session, conversation_id: str, user_id: str) -> None:
        await self._enter("add_member", session, conversation_id, user_id)

    async def remove_member(self, session: Session, conversation_id: str, user_id: str) -> None:
        await self._enter("remove_member", session, conversation_id, user_id)

    async def presign_upload(
        self,
        session: Session,
        conversation_id: str,
        *,
        file_name: str,
        content_type: str,
        size: int,
    ) -> PresignedUpload:
        await self._enter("presign_upload", session, conversation_id, file_name, size)
        return PresignedUpload(
            upload_url=f"https://storage.test/{file_name}?sig=abc",
            attachment_id=f"att-{file_name}",
            content_type=content_type,
        )


@dataclass
class FakeObjectStorage:
    puts: list[tuple[str, bytes, str]] = field(default_factory=list)
    fail: bool = False

    async def put(self, upload_url: str, data: bytes, content_type: str) -> None:
        if self.fail:
            raise UploadError("storage unavailable")
        self.puts.append((upload_url, data, content_type))


@dataclass
class Engine:
    """Stores plus the components driving them, wired around a FakeGateway."""

    gateway: FakeGateway
    storage: FakeObjectStorage
    conversations: ConversationStore
    messages: MessageStore
    banner: ErrorBanner
    reporter: ErrorReporter
    synchronizer: Synchronizer
    pipeline: SendPipeline


def make_engine(session: Session, gateway: FakeGateway | None = None, **sync_kwargs: Any) -> Engine:
    gateway = gateway or FakeGateway()
    storage = FakeObjectStorage()
    conversations = ConversationStore()
    messages = MessageStore()
    banner = ErrorBanner()
    reporter = ErrorReporter(banner)
    synchronizer = Synchronizer(
        session, gateway, conversations, messages, reporter, **sync_kwargs,
    )
    pipeline = SendPipeline(
        session,
        gateway,
        messages,
        reporter,
        AttachmentUploader(gateway, storage),
        FixedClock(),
    )
    return Engine(
        gateway=gateway,
        storage=storage,
        conversations=conversations,
        messages=messages,
        banner=banner,
        reporter=reporter,
        synchronizer=synchronizer,
        pipeline=pipeline,
    )


def gateway_down(detail: str = "boom") -> GatewayError:
    return GatewayError(detail, status_code=503)
