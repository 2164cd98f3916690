from functools import lru_cache

from app.core.config import get_settings
from app.platform.storage.minio_service import MinioStorageService
from app.platform.storage.service import PRESIGNED_URL_TTL, PresignedGrant, StorageService, build_object_key
from app.platform.storage.validation import (
    ALLOWED_CONTENT_TYPES,
    allowed_content_types,
    is_document_content_type,
    is_image_content_type,
    is_video_content_type,
    validate_content_type,
    validate_file_size,
)


@lru_cache
def get_storage_service() -> StorageService:
    return MinioStorageService.from_settings(get_settings())


__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "PRESIGNED_URL_TTL",
    "MinioStorageService",
    "PresignedGrant",
    "StorageService",
    "allowed_content_types",
    "build_object_key",
    "get_storage_service",
    "is_document_content_type",
    "is_image_content_type",
    "is_video_content_type",
    "validate_content_type",
    "validate_file_size",
]
