"""Session token inspection.

The token is only read here, never verified: signature checks belong to the
backend, which rejects bad tokens with 401.
"""
from __future__ import annotations

import jwt

from chat_client.application.dto.session import Session
from chat_client.application.exceptions import SessionExpiredError

NAME_CLAIMS = (
    "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/name",
    "unique_name",
    "name",
    "sub",
)


def read_claims(token: str) -> dict:
    if not token:
        raise SessionExpiredError("Missing session token")
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True},
            algorithms=["HS256", "RS256", "ES256"],
        )
    except jwt.ExpiredSignatureError as exc:
        raise SessionExpiredError("Session token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise SessionExpiredError(f"Invalid session token: {exc}") from exc


def user_name_from_token(token: str) -> str | None:
    claims = read_claims(token)
    for claim in NAME_CLAIMS:
        value = claims.get(claim)
        if value:
            return str(value)
    return None


def open_session(token: str, user_name: str | None = None) -> Session:
    """Build a session, taking the display name from the token when not given."""
    token_name = user_name_from_token(token)
    name = user_name or token_name
    if not name:
        raise SessionExpiredError("Session token carries no user name")
    return Session(token=token, user_name=name)
