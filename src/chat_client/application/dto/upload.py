from __future__ import annotations

from dataclasses import dataclass

from chat_client.domain.value_objects.content import AttachmentRef


@dataclass(frozen=True, slots=True)
class OutgoingFile:
    """A local file chosen for sending, not yet transferred."""

    file_name: str
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)

    def to_ref(self) -> AttachmentRef:
        return AttachmentRef(
            file_name=self.file_name,
            content_type=self.content_type,
            size=self.size,
        )


@dataclass(frozen=True, slots=True)
class PresignedUpload:
    upload_url: str
    attachment_id: str
    content_type: str
