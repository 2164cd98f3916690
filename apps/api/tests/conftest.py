from __future__ import annotations

import io
from collections.abc import Generator
from datetime import datetime, timezone
from typing import BinaryIO

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import events
from app.business.catalog import models as catalog_models  # noqa: F401
from app.business.quotes import models as quote_models  # noqa: F401
from app.core.config import get_settings
from app.core.context import TenantContext
from app.core.database import Base
from app.platform.errors import StorageError
from app.platform.storage import PRESIGNED_URL_TTL, PresignedGrant, build_object_key
from app.platform.storage.validation import validate_content_type, validate_file_size


class FakeStorageService:
    """In-memory object store with the same policy checks as the MinIO adapter."""

    def __init__(self, max_file_size: int = 1024 * 1024) -> None:
        self.max_file_size = max_file_size
        self.objects: dict[tuple[str, str], bytes] = {}
        self.deleted: list[tuple[str, str]] = []
        self.buckets: set[str] = set()
        self.fail_deletes = False

    def validate_content_type(self, content_type: str) -> str:
        return validate_content_type(content_type)

    def validate_file_size(self, size_bytes: int) -> None:
        validate_file_size(size_bytes, self.max_file_size)

    def get_max_file_size(self) -> int:
        return self.max_file_size

    def ensure_bucket_exists(self, bucket: str) -> None:
        self.buckets.add(bucket)

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
        return PresignedGrant(
            url=f"https://storage.test/{bucket}/{file_key}?X-Amz-Signature=put",
            file_key=file_key,
            expires_at=datetime.now(timezone.utc) + PRESIGNED_URL_TTL,
        )

    def generate_download_url(self, bucket: str, file_key: str) -> PresignedGrant:
        return PresignedGrant(
            url=f"https://storage.test/{bucket}/{file_key}?X-Amz-Signature=get",
            file_key=file_key,
            expires_at=datetime.now(timezone.utc) + PRESIGNED_URL_TTL,
        )

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
        self.objects[(bucket, file_key)] = data.read(size_bytes)
        return file_key

    def download_file(self, bucket: str, file_key: str) -> BinaryIO:
        return io.BytesIO(self.objects[(bucket, file_key)])

    def delete_object(self, bucket: str, file_key: str) -> None:
        if self.fail_deletes:
            raise StorageError("failed to delete object", op="delete object")
        self.objects.pop((bucket, file_key), None)
        self.deleted.append((bucket, file_key))


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clear_state() -> Generator[None, None, None]:
    events.published_events.clear()
    get_settings.cache_clear()
    yield
    events.published_events.clear()
    get_settings.cache_clear()


@pytest.fixture()
def storage() -> FakeStorageService:
    return FakeStorageService()


@pytest.fixture()
def tenant_a() -> TenantContext:
    return TenantContext(tenant_id="tenant-a", user_id="user-a")


@pytest.fixture()
def tenant_b() -> TenantContext:
    return TenantContext(tenant_id="tenant-b", user_id="user-b")
