from __future__ import annotations

import uuid
from typing import NewType

ConversationId = NewType("ConversationId", str)
MessageId = NewType("MessageId", str)
UserId = NewType("UserId", str)

TEMP_ID_PREFIX = "temp-"


def new_temp_message_id() -> MessageId:
    return MessageId(f"{TEMP_ID_PREFIX}{uuid.uuid4()}")


def is_temp_message_id(message_id: str) -> bool:
    return message_id.startswith(TEMP_ID_PREFIX)
