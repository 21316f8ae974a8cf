from __future__ import annotations

import logging

from chat_client.application.dto.session import Session
from chat_client.application.dto.upload import OutgoingFile
from chat_client.application.exceptions import AppError, SessionExpiredError, UploadError
from chat_client.application.ports.gateway import RemoteGateway
from chat_client.application.ports.storage import ObjectStorage

logger = logging.getLogger(__name__)


class AttachmentUploader:
    """Presign through the backend, then transfer the bytes directly."""

    def __init__(self, gateway: RemoteGateway, storage: ObjectStorage) -> None:
        self._gateway = gateway
        self._storage = storage

    async def upload(self, session: Session, conversation_id: str, file: OutgoingFile) -> str:
        """Return the attachment id. Any failure is raised as UploadError."""
        try:
            target = await self._gateway.presign_upload(
                session,
                conversation_id,
                file_name=file.file_name,
                content_type=file.content_type,
                size=file.size,
            )
            await self._storage.put(target.upload_url, file.data, target.content_type)
        except (UploadError, SessionExpiredError):
            raise
        except AppError as exc:
            raise UploadError(exc.detail or "Upload failed") from exc
        logger.info("Uploaded %s (%d bytes) as %s", file.file_name, file.size, target.attachment_id)
        return target.attachment_id
