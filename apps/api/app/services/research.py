"""Research record and upload service layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from uuid import uuid4

from app.adapters.backend.base import LOGS_TABLE, RESEARCH_TABLE, Backend, BackendError, Order, eq
from app.core.logging_safety import safe_log_identifier
from app.errors import backend_unavailable, forbidden, invalid_input
from app.schemas.research import ResearchRecord

logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_TYPES = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/gif",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
    }
)
_RESEARCH_COLUMNS = ("id", "user_id", "description", "file_url", "created_at")


@dataclass(slots=True)
class UploadedFile:
    filename: str
    content_type: str
    content: bytes


def object_key_for(filename: str) -> str:
    """Fresh random key carrying the original extension, lower-cased."""
    return f"{uuid4()}{PurePosixPath(filename).suffix.lower()}"


class ResearchService:
    def __init__(
        self,
        backend: Backend,
        *,
        bucket: str,
        max_upload_bytes: int,
        enforce_owner_scope: bool = False,
    ) -> None:
        self._backend = backend
        self._bucket = bucket
        self._max_upload_bytes = max_upload_bytes
        self._enforce_owner_scope = enforce_owner_scope

    async def create_research(self, *, owner_id: str, description: str, file_url: str | None) -> ResearchRecord:
        try:
            row = await self._backend.db.insert(
                RESEARCH_TABLE,
                {"description": description, "file_url": file_url or None, "user_id": owner_id},
            )
        except BackendError as exc:
            logger.error("research.create_failed error=%s", exc)
            raise backend_unavailable(str(exc)) from exc
        return ResearchRecord.model_validate(row)

    async def list_research(self, *, principal_id: str, user_id: str | None) -> list[ResearchRecord]:
        if not user_id or not user_id.strip():
            raise invalid_input("user_id query parameter is required")
        user_id = user_id.strip()
        # Any member may read any member's research unless owner scope is enforced.
        if self._enforce_owner_scope and user_id != principal_id:
            raise forbidden()

        try:
            rows = await self._backend.db.select(
                RESEARCH_TABLE,
                columns=_RESEARCH_COLUMNS,
                filters=(eq("user_id", user_id),),
                order=Order("created_at", descending=True),
            )
        except BackendError as exc:
            raise backend_unavailable(str(exc)) from exc
        return [ResearchRecord.model_validate(row) for row in rows]

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def _validate_upload(self, *, description: str | None, upload: UploadedFile | None) -> tuple[str, UploadedFile]:
        if description is None or not description.strip():
            raise invalid_input("Description is required")
        if upload is None or not upload.filename:
            raise invalid_input("File is required")
        if upload.content_type not in ALLOWED_UPLOAD_TYPES:
            raise invalid_input("Invalid file type")
        if len(upload.content) > self._max_upload_bytes:
            raise invalid_input("File too large")
        return description, upload

    async def upload(
        self,
        *,
        principal_id: str,
        description: str | None,
        upload: UploadedFile | None,
        claimed_user_id: str | None = None,
    ) -> ResearchRecord:
        """Store the file, then the research record, then the log entry.

        Each step only runs when the previous one succeeded.
        """
        description, upload = self._validate_upload(description=description, upload=upload)
        if claimed_user_id and claimed_user_id != principal_id:
            raise forbidden()

        key = object_key_for(upload.filename)
        try:
            await self._backend.storage.put_object(self._bucket, key, upload.content, upload.content_type)
            file_url = await self._backend.storage.get_public_url(self._bucket, key)
        except BackendError as exc:
            logger.error("upload.failed stage=storage error=%s", exc)
            raise backend_unavailable(str(exc)) from exc

        try:
            row = await self._backend.db.insert(
                RESEARCH_TABLE,
                {"description": description, "file_url": file_url, "user_id": principal_id},
            )
        except BackendError as exc:
            logger.error("upload.failed stage=research_insert key=%s error=%s", key, exc)
            raise backend_unavailable(str(exc)) from exc

        try:
            await self._backend.db.insert(
                LOGS_TABLE,
                {"description": f"Uploaded research file {upload.filename}", "user_id": principal_id},
            )
        except BackendError as exc:
            logger.error("upload.failed stage=log_insert key=%s error=%s", key, exc)
            raise backend_unavailable(str(exc)) from exc

        logger.info(
            "upload.stored principal_id=%s key=%s bytes=%d",
            safe_log_identifier(principal_id, prefix="pid"),
            key,
            len(upload.content),
        )
        return ResearchRecord.model_validate(row)
