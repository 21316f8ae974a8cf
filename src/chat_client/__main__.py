"""Entrypoint: python -m chat_client [TOKEN]

Opens a session from TOKEN (or the persisted one), loads the conversation
list and logs a summary.
"""
from __future__ import annotations

import asyncio
import logging
import sys

from chat_client.application.exceptions import SessionExpiredError
from chat_client.client import create_client, create_session_store, restore_session
from chat_client.config import settings
from chat_client.infrastructure.auth.token import open_session

logger = logging.getLogger("chat_client")


async def run(token: str | None) -> int:
    session_store = create_session_store(settings)
    try:
        session = open_session(token) if token else await restore_session(session_store)
    except SessionExpiredError as exc:
        logger.error("Cannot sign in: %s", exc.detail)
        return 1
    if session is None:
        logger.error("No session: pass a token to sign in")
        return 1

    client = create_client(session, session_store=session_store)
    try:
        await client.start()
        if not client.is_active:
            logger.error("Session expired, sign in again")
            return 1
        if client.banner.message:
            logger.error("%s", client.banner.message)
            return 1
        for conversation in client.conversations.conversations:
            logger.info(
                "%s [%s] %s unread=%d",
                conversation.id,
                conversation.kind,
                conversation.name,
                conversation.unread_count,
            )
        return 0
    finally:
        await client.aclose()
        aclose = getattr(session_store, "aclose", None)
        if aclose is not None:
            await aclose()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    token = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(asyncio.run(run(token)))


if __name__ == "__main__":
    main()
