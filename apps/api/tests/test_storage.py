from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from minio.error import MinioException

from app.core.config import Settings
from app.platform.errors import ContentTypeRejected, FileSizeRejected, StorageError
from app.platform.storage import (
    ALLOWED_CONTENT_TYPES,
    PRESIGNED_URL_TTL,
    MinioStorageService,
    allowed_content_types,
    build_object_key,
    is_document_content_type,
    is_image_content_type,
    is_video_content_type,
    validate_content_type,
    validate_file_size,
)


FIXED_NOW = datetime(2026, 5, 4, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def minio_client() -> MagicMock:
    client = MagicMock()
    client.presigned_put_object.side_effect = lambda bucket, key, expires: f"https://minio.test/{bucket}/{key}?put"
    client.presigned_get_object.side_effect = lambda bucket, key, expires: f"https://minio.test/{bucket}/{key}?get"
    return client


@pytest.fixture()
def adapter(minio_client: MagicMock) -> MinioStorageService:
    return MinioStorageService(minio_client, 1024, clock=lambda: FIXED_NOW)


def test_content_type_is_normalized_before_the_allow_list_check() -> None:
    assert validate_content_type("IMAGE/JPEG; charset=binary") == "image/jpeg"
    assert validate_content_type(" text/csv ") == "text/csv"


@pytest.mark.parametrize("content_type", ["application/x-msdownload", "image/bmp", "", "text/html"])
def test_unknown_content_types_are_rejected(content_type: str) -> None:
    with pytest.raises(ContentTypeRejected) as exc_info:
        validate_content_type(content_type)

    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("size", [1, 512, 1024])
def test_file_size_within_limit_is_accepted(size: int) -> None:
    validate_file_size(size, 1024)


@pytest.mark.parametrize("size", [0, -1, 1025])
def test_file_size_outside_limit_is_rejected(size: int) -> None:
    with pytest.raises(FileSizeRejected):
        validate_file_size(size, 1024)


def test_allowed_content_types_listing_is_sorted_and_complete() -> None:
    listing = allowed_content_types()

    assert listing == sorted(listing)
    assert set(listing) == ALLOWED_CONTENT_TYPES
    assert len(listing) == 24


def test_content_type_families() -> None:
    assert is_image_content_type("image/png")
    assert not is_image_content_type("application/pdf")
    assert is_video_content_type("video/mp4")
    assert is_document_content_type("application/pdf")
    assert is_document_content_type("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    assert is_document_content_type("text/plain")
    assert not is_document_content_type("image/png")


def test_object_key_layout() -> None:
    assert build_object_key("tenant-a/p1/image", "photo.jpg", token="abcd1234") == "tenant-a/p1/image/photo_abcd1234.jpg"
    assert build_object_key("/tenant-a//docs/", "..\\..\\evil.pdf", token="t") == "tenant-a/docs/evil_t.pdf"
    assert build_object_key("tenant-a", "README", token="t") == "tenant-a/README_t"


def test_two_upload_grants_for_the_same_file_get_distinct_keys(
    adapter: MinioStorageService,
    minio_client: MagicMock,
) -> None:
    first = adapter.generate_upload_url("bucket", "tenant-a/p1/image", "photo.jpg", "image/jpeg", 1024)
    second = adapter.generate_upload_url("bucket", "tenant-a/p1/image", "photo.jpg", "image/jpeg", 1024)

    assert first.file_key != second.file_key
    for grant in (first, second):
        assert grant.file_key.startswith("tenant-a/p1/image/photo_")
        assert grant.file_key.endswith(".jpg")
        assert grant.url == f"https://minio.test/bucket/{grant.file_key}?put"
        assert grant.expires_at == FIXED_NOW + timedelta(minutes=15)
    assert minio_client.presigned_put_object.call_count == 2
    assert minio_client.presigned_put_object.call_args.kwargs["expires"] == PRESIGNED_URL_TTL


def test_upload_grant_expiry_uses_wall_clock_by_default(minio_client: MagicMock) -> None:
    adapter = MinioStorageService(minio_client, 1024)

    before = datetime.now(timezone.utc)
    grant = adapter.generate_upload_url("bucket", "tenant-a", "photo.jpg", "image/jpeg", 10)
    after = datetime.now(timezone.utc)

    assert before + PRESIGNED_URL_TTL <= grant.expires_at <= after + PRESIGNED_URL_TTL


def test_rejected_upload_never_reaches_the_store(adapter: MinioStorageService, minio_client: MagicMock) -> None:
    with pytest.raises(ContentTypeRejected):
        adapter.generate_upload_url("bucket", "tenant-a", "setup.exe", "application/x-msdownload", 10)
    with pytest.raises(FileSizeRejected):
        adapter.generate_upload_url("bucket", "tenant-a", "photo.jpg", "image/jpeg", 1025)

    minio_client.presigned_put_object.assert_not_called()


def test_download_grant(adapter: MinioStorageService, minio_client: MagicMock) -> None:
    grant = adapter.generate_download_url("bucket", "tenant-a/p1/document/terms_1.pdf")

    assert grant.url == "https://minio.test/bucket/tenant-a/p1/document/terms_1.pdf?get"
    assert grant.expires_at == FIXED_NOW + PRESIGNED_URL_TTL
    minio_client.presigned_get_object.assert_called_once()


def test_store_failures_become_storage_errors(adapter: MinioStorageService, minio_client: MagicMock) -> None:
    minio_client.presigned_get_object.side_effect = MinioException("connection refused")
    minio_client.remove_object.side_effect = MinioException("connection refused")

    with pytest.raises(StorageError) as exc_info:
        adapter.generate_download_url("bucket", "key")
    assert exc_info.value.status_code == 500
    assert isinstance(exc_info.value.cause, MinioException)

    with pytest.raises(StorageError):
        adapter.delete_object("bucket", "key")


def test_server_mediated_transfers(adapter: MinioStorageService, minio_client: MagicMock) -> None:
    payload = b"%PDF-1.7 test"
    key = adapter.upload_file("bucket", "tenant-a/quotes/q1", "OFF-2026-0001.pdf", "application/pdf", io.BytesIO(payload), len(payload))

    assert key.startswith("tenant-a/quotes/q1/OFF-2026-0001_")
    args, kwargs = minio_client.put_object.call_args
    assert args[:2] == ("bucket", key)
    assert args[3] == len(payload)
    assert kwargs["content_type"] == "application/pdf"

    minio_client.get_object.return_value = io.BytesIO(payload)
    assert adapter.download_file("bucket", key).read() == payload

    adapter.delete_object("bucket", key)
    minio_client.remove_object.assert_called_once_with("bucket", key)


def test_ensure_bucket_exists_is_idempotent(adapter: MinioStorageService, minio_client: MagicMock) -> None:
    minio_client.bucket_exists.return_value = False
    adapter.ensure_bucket_exists("catalog-assets")
    minio_client.make_bucket.assert_called_once_with("catalog-assets")

    minio_client.make_bucket.reset_mock()
    minio_client.bucket_exists.return_value = True
    adapter.ensure_bucket_exists("catalog-assets")
    minio_client.make_bucket.assert_not_called()


def test_adapter_from_settings() -> None:
    adapter = MinioStorageService.from_settings(Settings(minio_endpoint="localhost:9000", minio_max_file_size=2048))
    assert adapter.get_max_file_size() == 2048

    with pytest.raises(StorageError):
        MinioStorageService.from_settings(Settings(minio_access_key=""))
