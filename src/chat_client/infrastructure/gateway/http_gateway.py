"""HTTP implementation of the remote gateway."""
from __future__ import annotations

import logging
import uuid
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import pydantic

from chat_client.application.dto.session import Session
from chat_client.application.dto.upload import PresignedUpload
from chat_client.application.exceptions import GatewayError, SessionExpiredError, ValidationError
from chat_client.config import Settings
from chat_client.domain.entities.conversation import Conversation
from chat_client.domain.entities.message import Message
from chat_client.domain.entities.user import ChatUser
from chat_client.domain.value_objects.content import MessageContent
from chat_client.infrastructure.gateway import mappers
from chat_client.infrastructure.gateway.schemas import (
    AddMemberRequest,
    ChatDto,
    ChatMessageDto,
    ChatSummaryDto,
    ChatUserDto,
    CreateGroupChatRequest,
    CreatePrivateChatRequest,
    PresignRequest,
    PresignResponse,
    WireModel,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

M = TypeVar("M", bound=WireModel)


def _chat_path(conversation_id: str, *rest: str) -> str:
    parts = [quote(conversation_id, safe=""), *(quote(p, safe="") for p in rest)]
    return "/Chats/" + "/".join(parts)


class HttpGateway:
    """Implements application.ports.gateway.RemoteGateway over httpx.

    The underlying client carries no auth defaults: the bearer header is built
    from the session passed into each call.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpGateway:
        return cls(
            httpx.AsyncClient(
                base_url=settings.API_BASE_URL,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- conversations -------------------------------------------------------

    async def list_conversations(self, session: Session) -> list[Conversation]:
        response = await self._request("GET", "/Chats", session)
        return [mappers.summary_to_entity(dto) for dto in _parse_list(ChatSummaryDto, response)]

    async def create_private_chat(self, session: Session, target_user_id: str) -> Conversation:
        body = CreatePrivateChatRequest(target_user_id=target_user_id)
        response = await self._request("POST", "/Chats/private", session, json=_dump(body))
        return mappers.chat_to_entity(_parse(ChatDto, response))

    async def create_group_chat(
        self, session: Session, name: str, member_ids: list[str],
    ) -> Conversation:
        body = CreateGroupChatRequest(name=name, member_ids=member_ids)
        response = await self._request("POST", "/Chats/group", session, json=_dump(body))
        return mappers.chat_to_entity(_parse(ChatDto, response))

    # -- messages ------------------------------------------------------------

    async def list_messages(
        self,
        session: Session,
        conversation_id: str,
        *,
        skip: int = 0,
        take: int = 50,
    ) -> list[Message]:
        response = await self._request(
            "GET",
            _chat_path(conversation_id, "messages"),
            session,
            params={"skip": skip, "take": take},
        )
        dtos = _parse_list(ChatMessageDto, response)
        return mappers.messages_to_entities(dtos, session.user_name)

    async def send_message(
        self,
        session: Session,
        conversation_id: str,
        content: MessageContent,
    ) -> Message:
        ref = content.attachment
        if ref is not None and ref.attachment_id is None:
            raise ValidationError("Attachment must be uploaded before sending")
        body = mappers.content_to_request(content)
        response = await self._request(
            "POST", _chat_path(conversation_id, "messages"), session, json=_dump(body),
        )
        return mappers.message_to_entity(
            _parse(ChatMessageDto, response), session.user_name, fallback_content=content,
        )

    async def mark_read(self, session: Session, conversation_id: str) -> None:
        await self._request("POST", _chat_path(conversation_id, "read"), session)

    # -- users and members ---------------------------------------------------

    async def search_users(self, session: Session, query: str) -> list[ChatUser]:
        trimmed = query.strip()
        params = {"search": trimmed} if trimmed else None
        response = await self._request("GET", "/Users", session, params=params)
        return [mappers.user_to_entity(dto) for dto in _parse_list(ChatUserDto, response)]

    async def list_members(self, session: Session, conversation_id: str) -> list[ChatUser]:
        response = await self._request("GET", _chat_path(conversation_id, "members"), session)
        return [mappers.user_to_entity(dto) for dto in _parse_list(ChatUserDto, response)]

    async def add_member(self, session: Session, conversation_id: str, user_id: str) -> None:
        body = AddMemberRequest(user_id=user_id)
        await self._request(
            "POST", _chat_path(conversation_id, "members"), session, json=_dump(body),
        )

    async def remove_member(self, session: Session, conversation_id: str, user_id: str) -> None:
        if not user_id:
            raise ValidationError("Invalid member id")
        await self._request("DELETE", _chat_path(conversation_id, "members", user_id), session)

    # -- attachments ---------------------------------------------------------

    async def presign_upload(
        self,
        session: Session,
        conversation_id: str,
        *,
        file_name: str,
        content_type: str,
        size: int,
    ) -> PresignedUpload:
        body = PresignRequest(
            chat_id=conversation_id,
            file_name=file_name,
            content_type=content_type,
            file_size=size,
        )
        response = await self._request("POST", "/Attachments/presign", session, json=_dump(body))
        dto = _parse(PresignResponse, response)
        return PresignedUpload(
            upload_url=dto.upload_url,
            attachment_id=dto.attachment_id,
            content_type=dto.content_type,
        )

    # -- transport -----------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        session: Session,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        if not session.token:
            raise SessionExpiredError("Missing session token")

        request_id = uuid.uuid4().hex
        headers = {
            "Authorization": session.authorization,
            REQUEST_ID_HEADER: request_id,
        }
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error(
                "%s %s failed with status=%d (request_id=%s)", method, path, status, request_id,
            )
            if status == 401:
                raise SessionExpiredError("Session token rejected") from exc
            raise GatewayError(f"HTTP {status}: {exc.response.text}", status_code=status) from exc
        except httpx.RequestError as exc:
            logger.error("%s %s request error: %s (request_id=%s)", method, path, exc, request_id)
            raise GatewayError(f"Request failed: {exc}") from exc

        logger.debug("%s %s -> %d (request_id=%s)", method, path, response.status_code, request_id)
        return response


def _dump(body: WireModel) -> dict[str, Any]:
    return body.model_dump(by_alias=True, exclude_none=True)


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise GatewayError("Malformed response body", status_code=response.status_code) from exc


def _parse(model: type[M], response: httpx.Response) -> M:
    try:
        return model.model_validate(_json(response))
    except pydantic.ValidationError as exc:
        raise GatewayError(f"Unexpected response shape: {exc}", status_code=response.status_code) from exc


def _parse_list(model: type[M], response: httpx.Response) -> list[M]:
    data = _json(response)
    if not isinstance(data, list):
        raise GatewayError("Expected a JSON array", status_code=response.status_code)
    try:
        return [model.model_validate(item) for item in data]
    except pydantic.ValidationError as exc:
        raise GatewayError(f"Unexpected response shape: {exc}", status_code=response.status_code) from exc
