"""Wire shapes (DTOs) returned and accepted by the backend API."""
from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ChatUserDto(WireModel):
    id: str = Field(validation_alias=AliasChoices("id", "userId", "user_id"))
    username: str
    email: str | None = None
    role: str = ""


class ChatSummaryDto(WireModel):
    chat_id: str
    name: str | None = None
    is_group: bool = False
    unread_count: int = 0
    other_user_name: str | None = None


class ChatDto(WireModel):
    """Response of the create-private / create-group calls."""

    id: str
    name: str | None = None
    is_group: bool = False
    created_by_user_id: str | None = None
    created_at: datetime | None = None
    members: list[ChatUserDto] = []


class AttachmentDto(WireModel):
    attachment_id: str
    file_name: str
    content_type: str
    size: int | None = None


class ChatMessageDto(WireModel):
    id: str
    chat_id: str
    sender_id: str
    sender_user_name: str | None = None
    text: str | None = None
    created_at: datetime
    gif_url: str | None = None
    attachment: AttachmentDto | None = None


class SendMessageRequest(WireModel):
    text: str | None = None
    gif_url: str | None = None
    attachment_id: str | None = None


class CreatePrivateChatRequest(WireModel):
    target_user_id: str


class CreateGroupChatRequest(WireModel):
    name: str
    member_ids: list[str]


class AddMemberRequest(WireModel):
    user_id: str


class PresignRequest(WireModel):
    chat_id: str
    file_name: str
    content_type: str
    file_size: int


class PresignResponse(WireModel):
    upload_url: str
    attachment_id: str
    content_type: str
