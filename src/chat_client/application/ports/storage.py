from __future__ import annotations

from typing import Protocol

from chat_client.application.dto.session import Session


class ObjectStorage(Protocol):
    """Direct transfer to a presigned upload target."""

    async def put(self, upload_url: str, data: bytes, content_type: str) -> None: ...


class SessionStore(Protocol):
    """Persists the session token and display name across restarts."""

    async def load(self) -> Session | None: ...

    async def save(self, session: Session) -> None: ...

    async def clear(self) -> None: ...
