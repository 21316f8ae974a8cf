"""Direct transfer of attachment bytes to a presigned upload target."""
from __future__ import annotations

import logging

import httpx

from chat_client.application.exceptions import UploadError

logger = logging.getLogger(__name__)


class PresignedPutStorage:
    """Implements application.ports.storage.ObjectStorage.

    The target URL is pre-authorized, so no bearer token is sent.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def put(self, upload_url: str, data: bytes, content_type: str) -> None:
        try:
            response = await self._client.put(
                upload_url, content=data, headers={"Content-Type": content_type},
            )
        except httpx.RequestError as exc:
            raise UploadError(f"Upload failed: {exc}") from exc
        if response.is_error:
            detail = response.text or f"Upload failed ({response.status_code})"
            logger.error("Presigned PUT failed with status=%d", response.status_code)
            raise UploadError(detail)

    async def aclose(self) -> None:
        await self._client.aclose()
