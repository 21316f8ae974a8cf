from __future__ import annotations

from dataclasses import dataclass

from chat_client.domain.value_objects.ids import UserId


@dataclass(frozen=True, slots=True)
class ChatUser:
    id: UserId
    username: str
    email: str | None = None
    role: str = ""

    def is_named(self, name: str) -> bool:
        return self.username.lower() == name.lower()
