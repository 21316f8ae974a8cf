"""A small FastAPI stand-in for the chat backend, served over httpx.ASGITransport."""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse

BASE_URL = "https://chat.test/api"
UPLOAD_HOST = "https://chat.test/upload"
CREATED_AT = "2024-05-01T12:00:00Z"


@dataclass
class Recorded:
    method: str
    path: str
    authorization: str | None
    request_id: str | None
    query: dict[str, str]


@dataclass
class BackendState:
    tokens: dict[str, str] = field(default_factory=lambda: {"token-alice": "alice", "token-bob": "bob"})
    chats: list[dict[str, Any]] = field(default_factory=list)
    messages: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    users: list[dict[str, Any]] = field(default_factory=list)
    members: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    # "METHOD /path" -> (status, json body) answered instead of the real route
    overrides: dict[str, tuple[int, Any]] = field(default_factory=dict)
    requests: list[Recorded] = field(default_factory=list)
    bodies: list[tuple[str, Any]] = field(default_factory=list)
    attachments: dict[str, dict[str, Any]] = field(default_factory=dict)
    uploads: list[tuple[str, bytes, str | None, str | None]] = field(default_factory=list)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def bodies_for(self, key: str) -> list[Any]:
        return [body for k, body in self.bodies if k == key]

    def api_calls(self, method: str | None = None) -> list[Recorded]:
        return [
            r for r in self.requests
            if r.path.startswith("/api/") and (method is None or r.method == method)
        ]


def build_backend(state: BackendState) -> FastAPI:
    app = FastAPI()
    api = APIRouter(prefix="/api")

    @app.middleware("http")
    async def gatekeeper(request: Request, call_next):
        path = request.url.path
        state.requests.append(
            Recorded(
                method=request.method,
                path=path,
                authorization=request.headers.get("authorization"),
                request_id=request.headers.get("x-request-id"),
                query=dict(request.query_params),
            )
        )
        override = state.overrides.get(f"{request.method} {path}")
        if override is not None:
            status, body = override
            return JSONResponse(body, status_code=status)
        if path.startswith("/api/"):
            auth = request.headers.get("authorization", "")
            token = auth.removeprefix("Bearer ")
            if not auth.startswith("Bearer ") or token not in state.tokens:
                return JSONResponse({"title": "Unauthorized"}, status_code=401)
        return await call_next(request)

    def caller(request: Request) -> str:
        token = request.headers["authorization"].removeprefix("Bearer ")
        return state.tokens[token]

    async def body_of(request: Request) -> Any:
        body = await request.json()
        state.bodies.append((f"{request.method} {request.url.path}", body))
        return body

    @api.get("/Chats")
    async def list_chats():
        return state.chats

    @api.post("/Chats/private")
    async def create_private(request: Request):
        body = await body_of(request)
        chat_id = f"dm-{body['targetUserId']}"
        if not any(c["chatId"] == chat_id for c in state.chats):
            state.chats.append({"chatId": chat_id, "isGroup": False, "unreadCount": 0})
        return {"id": chat_id, "isGroup": False, "createdByUserId": caller(request), "createdAt": CREATED_AT}

    @api.post("/Chats/group")
    async def create_group(request: Request):
        body = await body_of(request)
        chat_id = state.next_id("group")
        state.chats.append({"chatId": chat_id, "name": body["name"], "isGroup": True, "unreadCount": 0})
        return {"id": chat_id, "name": body["name"], "isGroup": True, "members": []}

    @api.get("/Chats/{chat_id}/messages")
    async def list_messages(chat_id: str, skip: int = 0, take: int = 50):
        return state.messages.get(chat_id, [])[skip:skip + take]

    @api.post("/Chats/{chat_id}/messages")
    async def send_message(chat_id: str, request: Request):
        body = await body_of(request)
        message = {
            "id": state.next_id("srv"),
            "chatId": chat_id,
            "senderId": f"id-{caller(request)}",
            "senderUserName": caller(request),
            "text": body.get("text"),
            "gifUrl": body.get("gifUrl"),
            "createdAt": CREATED_AT,
        }
        attachment_id = body.get("attachmentId")
        if attachment_id:
            message["attachment"] = state.attachments.get(
                attachment_id,
                {"attachmentId": attachment_id, "fileName": "file", "contentType": "application/octet-stream"},
            )
        state.messages.setdefault(chat_id, []).append(message)
        return message

    @api.post("/Chats/{chat_id}/read")
    async def mark_read(chat_id: str):
        for chat in state.chats:
            if chat["chatId"] == chat_id:
                chat["unreadCount"] = 0
        return Response(status_code=204)

    @api.get("/Users")
    async def search_users(search: str | None = None):
        if not search:
            return state.users
        return [u for u in state.users if search.lower() in u["username"].lower()]

    @api.get("/Chats/{chat_id}/members")
    async def list_members(chat_id: str):
        return state.members.get(chat_id, [])

    @api.post("/Chats/{chat_id}/members")
    async def add_member(chat_id: str, request: Request):
        body = await body_of(request)
        user = next((u for u in state.users if u["id"] == body["userId"]), None)
        if user is None:
            return JSONResponse({"title": "Unknown user"}, status_code=404)
        state.members.setdefault(chat_id, []).append(user)
        return Response(status_code=204)

    @api.delete("/Chats/{chat_id}/members/{member_id}")
    async def remove_member(chat_id: str, member_id: str):
        state.members[chat_id] = [
            m for m in state.members.get(chat_id, []) if m.get("id", m.get("userId")) != member_id
        ]
        return Response(status_code=204)

    @api.post("/Attachments/presign")
    async def presign(request: Request):
        body = await body_of(request)
        attachment_id = state.next_id("att")
        state.attachments[attachment_id] = {
            "attachmentId": attachment_id,
            "fileName": body["fileName"],
            "contentType": body["contentType"],
            "size": body["fileSize"],
        }
        return {
            "uploadUrl": f"{UPLOAD_HOST}/{attachment_id}?sig=xyz",
            "attachmentId": attachment_id,
            "contentType": body["contentType"],
        }

    @app.put("/upload/{attachment_id}")
    async def upload(attachment_id: str, request: Request):
        data = await request.body()
        state.uploads.append(
            (
                attachment_id,
                data,
                request.headers.get("content-type"),
                request.headers.get("authorization"),
            )
        )
        return Response(status_code=200)

    app.include_router(api)
    return app


@pytest.fixture
def backend() -> BackendState:
    return BackendState(
        chats=[
            {"chatId": "c1", "name": "General", "isGroup": True, "unreadCount": 3},
            {"chatId": "c2", "isGroup": False, "unreadCount": 0, "otherUserName": "bob"},
        ],
        messages={
            "c1": [
                {
                    "id": "m1",
                    "chatId": "c1",
                    "senderId": "id-bob",
                    "senderUserName": "bob",
                    "text": "hi alice",
                    "createdAt": CREATED_AT,
                },
                {
                    "id": "m2",
                    "chatId": "c1",
                    "senderId": "id-alice",
                    "senderUserName": "Alice",
                    "text": "hey",
                    "createdAt": CREATED_AT,
                },
            ],
        },
        users=[
            {"id": "u-alice", "username": "alice", "role": "User"},
            {"id": "u-bob", "username": "bob", "email": "bob@chat.test", "role": "User"},
            {"id": "u-carol", "username": "carol", "role": "User"},
        ],
        members={
            "c1": [
                {"id": "u-alice", "username": "alice"},
                {"userId": "u-bob", "username": "bob"},
            ],
        },
    )


@pytest_asyncio.fixture
async def http_client(backend):
    transport = httpx.ASGITransport(app=build_backend(backend))
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as client:
        yield client
