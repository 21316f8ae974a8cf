"""Message content variants.

A message carries text, a GIF, an attachment, or text combined with a GIF
and/or an attachment. The empty case has no variant: ``compose`` returns
``None`` for it and the constructors reject blank parts.
"""
from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class AttachmentRef:
    file_name: str = ""
    content_type: str = "application/octet-stream"
    size: int | None = None
    attachment_id: str | None = None  # None until the upload has completed

    def with_id(self, attachment_id: str) -> AttachmentRef:
        return AttachmentRef(
            file_name=self.file_name,
            content_type=self.content_type,
            size=self.size,
            attachment_id=attachment_id,
        )


@dataclass(frozen=True, slots=True)
class Text:
    text: str

    def __post_init__(self) -> None:
        if not self.text.strip():
            raise ValueError("Text content must not be blank")

    @property
    def gif_url(self) -> None:
        return None

    @property
    def attachment(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Gif:
    url: str

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("GIF url must not be empty")

    @property
    def text(self) -> None:
        return None

    @property
    def gif_url(self) -> str:
        return self.url

    @property
    def attachment(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Attachment:
    ref: AttachmentRef

    @property
    def text(self) -> None:
        return None

    @property
    def gif_url(self) -> None:
        return None

    @property
    def attachment(self) -> AttachmentRef:
        return self.ref


@dataclass(frozen=True, slots=True)
class Combined:
    """Text together with a GIF and/or an attachment.

    A GIF plus an attachment without text is also allowed; what is rejected is
    a ``Combined`` that would collapse into a single-part variant.
    """

    text: str | None
    gif: Gif | None = None
    file: Attachment | None = None

    def __post_init__(self) -> None:
        parts = [bool(self.text and self.text.strip()), self.gif is not None, self.file is not None]
        if sum(parts) < 2:
            raise ValueError("Combined content needs at least two parts")

    @property
    def gif_url(self) -> str | None:
        return self.gif.url if self.gif else None

    @property
    def attachment(self) -> AttachmentRef | None:
        return self.file.ref if self.file else None


MessageContent = Text | Gif | Attachment | Combined


def compose(
    text: str | None = None,
    gif_url: str | None = None,
    attachment: AttachmentRef | None = None,
) -> MessageContent | None:
    """Build the narrowest content variant, or None when every part is empty."""
    trimmed = (text or "").strip() or None
    gif = Gif(gif_url) if gif_url else None
    file = Attachment(attachment) if attachment is not None else None

    present = [p for p in (trimmed, gif, file) if p is not None]
    if not present:
        return None
    if len(present) > 1:
        return Combined(text=trimmed, gif=gif, file=file)
    if trimmed is not None:
        return Text(trimmed)
    return gif or file


def attachment_id_of(content: MessageContent) -> str | None:
    ref = content.attachment
    return ref.attachment_id if ref is not None else None


def with_attachment_id(content: MessageContent, attachment_id: str) -> MessageContent:
    """Return ``content`` with its attachment pointing at the uploaded id."""
    if isinstance(content, Attachment):
        return Attachment(content.ref.with_id(attachment_id))
    if isinstance(content, Combined) and content.file is not None:
        return replace(content, file=Attachment(content.file.ref.with_id(attachment_id)))
    return content
