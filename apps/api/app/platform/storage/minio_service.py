from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import BinaryIO

from minio import Minio
from minio.error import MinioException

from app.core.config import Settings
from app.metrics import observe_presigned_grant, observe_storage_failure
from app.otel import get_tracer, traced
from app.platform.errors import StorageError
from app.platform.storage.service import PRESIGNED_URL_TTL, PresignedGrant, build_object_key
from app.platform.storage.validation import validate_content_type, validate_file_size


logger = logging.getLogger("app.storage")
tracer = get_tracer("app.storage")


@contextmanager
def _storage_op(op: str, bucket: str, file_key: str | None = None) -> Iterator[None]:
    span_name = "storage." + op.replace(" ", "_")
    with traced(tracer, span_name, **{"storage.bucket": bucket, "storage.file_key": file_key}):
        try:
            yield
        except MinioException as exc:
            observe_storage_failure(op)
            logger.error(
                "storage.error",
                extra={"op": op, "bucket": bucket, "file_key": file_key, "error": str(exc)},
            )
            raise StorageError(f"failed to {op}", op=op, cause=exc) from exc


class MinioStorageService:
    """Object storage backed by an S3-compatible MinIO endpoint."""

    def __init__(
        self,
        client: Minio,
        max_file_size: int,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._max_file_size = max_file_size
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, settings: Settings) -> MinioStorageService:
        if not settings.is_minio_enabled:
            raise StorageError("object storage is not configured", op="configure storage")
        client = Minio(
            settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_use_ssl,
        )
        return cls(client, settings.minio_max_file_size)

    def validate_content_type(self, content_type: str) -> str:
        return validate_content_type(content_type)

    def validate_file_size(self, size_bytes: int) -> None:
        validate_file_size(size_bytes, self._max_file_size)

    def get_max_file_size(self) -> int:
        return self._max_file_size

    def ensure_bucket_exists(self, bucket: str) -> None:
        with _storage_op("ensure bucket", bucket):
            if not self._client.bucket_exists(bucket):
                self._client.make_bucket(bucket)
                logger.info("storage.bucket_created", extra={"bucket": bucket})

    def generate_upload_url(
        self,
        bucket: str,
        folder: str,
        file_name: str,
        content_type: str,
        size_bytes: int,
    ) -> PresignedGrant:
        self.validate_content_type(content_type)
        self.validate_file_size(size_bytes)

        file_key = build_object_key(folder, file_name)
        expires_at = self._clock() + PRESIGNED_URL_TTL
        with _storage_op("generate presigned upload url", bucket, file_key):
            url = self._client.presigned_put_object(bucket, file_key, expires=PRESIGNED_URL_TTL)
        observe_presigned_grant("upload")
        return PresignedGrant(url=url, file_key=file_key, expires_at=expires_at)

    def generate_download_url(self, bucket: str, file_key: str) -> PresignedGrant:
        expires_at = self._clock() + PRESIGNED_URL_TTL
        with _storage_op("generate presigned download url", bucket, file_key):
            url = self._client.presigned_get_object(bucket, file_key, expires=PRESIGNED_URL_TTL)
        observe_presigned_grant("download")
        return PresignedGrant(url=url, file_key=file_key, expires_at=expires_at)

    def upload_file(
        self,
        bucket: str,
        folder: str,
        file_name: str,
        content_type: str,
        data: BinaryIO,
        size_bytes: int,
    ) -> str:
        file_key = build_object_key(folder, file_name)
        with _storage_op("upload file", bucket, file_key):
            self._client.put_object(bucket, file_key, data, size_bytes, content_type=content_type)
        return file_key

    def download_file(self, bucket: str, file_key: str) -> BinaryIO:
        # Caller owns the response: close() and release_conn() when done.
        with _storage_op("download file", bucket, file_key):
            return self._client.get_object(bucket, file_key)

    def delete_object(self, bucket: str, file_key: str) -> None:
        with _storage_op("delete object", bucket, file_key):
            self._client.remove_object(bucket, file_key)
