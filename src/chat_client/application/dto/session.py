from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Session:
    """Authenticated session context passed explicitly to every gateway call."""

    token: str
    user_name: str

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"

    def __repr__(self) -> str:
        return f"Session(user_name={self.user_name!r})"
