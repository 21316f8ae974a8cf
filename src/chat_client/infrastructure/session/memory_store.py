from __future__ import annotations

from chat_client.application.dto.session import Session


class InMemorySessionStore:
    """Implements application.ports.storage.SessionStore for a single process."""

    def __init__(self) -> None:
        self._session: Session | None = None

    async def load(self) -> Session | None:
        return self._session

    async def save(self, session: Session) -> None:
        self._session = session

    async def clear(self) -> None:
        self._session = None
