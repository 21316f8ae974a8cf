"""Optimistic message sending.

A submission appears in the conversation as a pending record before any
network call. It is then either replaced in place by the server's record or
removed, so the sequence is never left half-applied.
"""
from __future__ import annotations

import asyncio
import logging

from chat_client.application.dto.session import Session
from chat_client.application.dto.upload import OutgoingFile
from chat_client.application.exceptions import AppError, UploadError
from chat_client.application.ports.clock import Clock, SystemClock
from chat_client.application.ports.gateway import RemoteGateway
from chat_client.application.reporting import ErrorReporter
from chat_client.application.stores.message_store import MessageStore
from chat_client.domain.entities.message import Message
from chat_client.domain.value_objects.content import AttachmentRef, compose, with_attachment_id
from chat_client.domain.value_objects.enums import MessageStatus
from chat_client.domain.value_objects.ids import ConversationId, new_temp_message_id
from chat_client.services.attachments import AttachmentUploader

logger = logging.getLogger(__name__)


class SendPipeline:
    def __init__(
        self,
        session: Session,
        gateway: RemoteGateway,
        messages: MessageStore,
        reporter: ErrorReporter,
        uploader: AttachmentUploader,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._gateway = gateway
        self._messages = messages
        self._reporter = reporter
        self._uploader = uploader
        self._clock = clock or SystemClock()
        self._pending: dict[str, Message] = {}

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    async def submit(
        self,
        conversation_id: str,
        *,
        text: str | None = None,
        gif_url: str | None = None,
        attachment_id: str | None = None,
        file: OutgoingFile | None = None,
    ) -> Message | None:
        """Send a message optimistically.

        Returns None when there is nothing to send (no side effects at all),
        otherwise the final record: CONFIRMED on success, FAILED after
        rollback.
        """
        ref: AttachmentRef | None = None
        if file is not None:
            ref = file.to_ref()
        elif attachment_id:
            ref = AttachmentRef(attachment_id=attachment_id)

        content = compose(text, gif_url, ref)
        if content is None:
            return None

        session = self._session
        pending = Message(
            id=new_temp_message_id(),
            conversation_id=ConversationId(conversation_id),
            sender_id=session.user_name,
            sender_name=session.user_name,
            content=content,
            created_at=self._clock.now(),
            is_mine=True,
            status=MessageStatus.PENDING,
        )
        self._messages.append(pending)
        self._pending[pending.id] = pending

        try:
            outgoing = content
            if file is not None:
                uploaded_id = await self._uploader.upload(session, conversation_id, file)
                outgoing = with_attachment_id(content, uploaded_id)
            confirmed = await self._gateway.send_message(session, conversation_id, outgoing)
        except UploadError as exc:
            self._rollback(pending)
            self._reporter.transient("Failed to upload attachment.", exc)
            return pending.with_status(MessageStatus.FAILED)
        except AppError as exc:
            self._rollback(pending)
            self._reporter.transient("Failed to send message.", exc)
            return pending.with_status(MessageStatus.FAILED)
        except asyncio.CancelledError:
            self._rollback(pending)
            raise

        self._pending.pop(pending.id, None)
        if not self._messages.replace(conversation_id, pending.id, confirmed):
            logger.warning("Pending message %s vanished before confirmation", pending.id)
        logger.debug("Message %s confirmed as %s", pending.id, confirmed.id)
        return confirmed

    def _rollback(self, pending: Message) -> None:
        self._pending.pop(pending.id, None)
        self._messages.remove(pending.conversation_id, pending.id)
        logger.info("Rolled back pending message %s", pending.id)
