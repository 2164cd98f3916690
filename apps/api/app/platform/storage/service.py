from __future__ import annotations

import posixpath
import uuid
from datetime import datetime, timedelta
from typing import BinaryIO, Protocol

from pydantic import BaseModel


PRESIGNED_URL_TTL = timedelta(minutes=15)


class PresignedGrant(BaseModel):
    """Time-limited credential for a single object. Never persisted."""

    url: str
    file_key: str
    expires_at: datetime


class StorageService(Protocol):
    def generate_upload_url(
        self,
        bucket: str,
        folder: str,
        file_name: str,
        content_type: str,
        size_bytes: int,
    ) -> PresignedGrant: ...

    def generate_download_url(self, bucket: str, file_key: str) -> PresignedGrant: ...

    def upload_file(
        self,
        bucket: str,
        folder: str,
        file_name: str,
        content_type: str,
        data: BinaryIO,
        size_bytes: int,
    ) -> str: ...

    def download_file(self, bucket: str, file_key: str) -> BinaryIO: ...

    def delete_object(self, bucket: str, file_key: str) -> None: ...

    def ensure_bucket_exists(self, bucket: str) -> None: ...

    def validate_content_type(self, content_type: str) -> str: ...

    def validate_file_size(self, size_bytes: int) -> None: ...

    def get_max_file_size(self) -> int: ...


def build_object_key(folder: str, file_name: str, token: str | None = None) -> str:
    """Return ``{folder}/{base}_{token}{ext}`` with forward slashes on every platform."""

    name = posixpath.basename(file_name.replace("\\", "/")) or "file"
    base, ext = posixpath.splitext(name)
    unique = token if token is not None else uuid.uuid4().hex[:8]
    parts = [part for part in folder.replace("\\", "/").split("/") if part]
    parts.append(f"{base}_{unique}{ext}")
    return "/".join(parts)
