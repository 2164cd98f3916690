from __future__ import annotations

import uuid
from collections.abc import Generator
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app import events
from app.core.auth import AuthUser, get_current_user
from app.core.database import get_db
from app.main import app
from app.platform.errors import StorageError
from app.platform.storage import get_storage_service

from conftest import FakeStorageService


HEADERS = {"x-tenant-id": "tenant-a"}
PDF = b"%PDF-1.4\n%%EOF"


@pytest.fixture()
def client(db_session: Session, storage: FakeStorageService) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_user() -> AuthUser:
        return AuthUser(sub="quote-user", roles=["user"])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_storage_service] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _items(*prices: int) -> list[dict]:
    return [
        {"description": f"Line {index}", "quantity": "1", "unit_price_cents": price, "tax_rate_bps": 2100}
        for index, price in enumerate(prices)
    ]


def _create_quote(client: TestClient, *prices: int, **fields) -> dict:
    response = client.post("/quotes", json={"items": _items(*(prices or (10000,))), **fields}, headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


def test_calculate_endpoint(client: TestClient) -> None:
    response = client.post(
        "/quotes/calculate",
        json={"items": _items(10000), "discount_type": "fixed", "discount_value": 1000},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["subtotal_cents"] == 10000
    assert body["vat_total_cents"] == 1890
    assert body["total_cents"] == 10890
    assert body["vat_breakdown"] == [{"rate_bps": 2100, "amount_cents": 1890}]


def test_calculate_requires_tenant(client: TestClient) -> None:
    response = client.post("/quotes/calculate", json={"items": _items(10000)})

    assert response.status_code == 400
    assert response.json()["kind"] == "validation"


def test_unknown_catalog_product_is_rejected(client: TestClient) -> None:
    items = _items(10000)
    items[0]["catalog_product_id"] = str(uuid.uuid4())

    response = client.post("/quotes", json={"items": items}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json() == {"detail": "one or more catalog products were not found", "kind": "validation"}


def test_quote_requires_at_least_one_item(client: TestClient) -> None:
    response = client.post("/quotes", json={"items": []}, headers=HEADERS)

    assert response.status_code == 422


def test_quote_lifecycle(client: TestClient) -> None:
    quote = _create_quote(client, 10000, 2500, customer_name="Jansen")
    assert quote["quote_number"] == f"OFF-{datetime.now(timezone.utc).year}-0001"
    assert quote["status"] == "Draft"
    assert quote["total_cents"] == 15125

    updated = client.put(f"/quotes/{quote['id']}", json={"items": _items(20000)}, headers=HEADERS)
    assert updated.status_code == 200
    assert updated.json()["total_cents"] == 24200
    assert len(updated.json()["items"]) == 1

    sent = client.post(f"/quotes/{quote['id']}/status", json={"status": "Sent"}, headers=HEADERS)
    assert sent.status_code == 200

    locked = client.put(f"/quotes/{quote['id']}", json={"notes": "late"}, headers=HEADERS)
    assert locked.status_code == 409
    assert locked.json() == {"detail": "only draft quotes can be edited", "kind": "conflict"}

    invalid = client.post(f"/quotes/{quote['id']}/status", json={"status": "Draft"}, headers=HEADERS)
    assert invalid.status_code == 409

    listing = client.get("/quotes", params={"status": "Sent"}, headers=HEADERS)
    assert [item["id"] for item in listing.json()["items"]] == [quote["id"]]
    assert client.get("/quotes", params={"status": "Draft"}, headers=HEADERS).json()["total"] == 0

    statuses = [item["payload"]["new_status"] for item in events.published_events if item["event_type"] == "quote.status_changed"]
    assert statuses == ["Sent"]

    assert client.delete(f"/quotes/{quote['id']}", headers=HEADERS).status_code == 204
    assert client.get(f"/quotes/{quote['id']}", headers=HEADERS).status_code == 404


def test_list_quotes_rejects_unknown_sort(client: TestClient) -> None:
    response = client.get("/quotes", params={"sort_by": "tenantId"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json() == {"detail": "invalid sort field", "kind": "validation"}


def test_quote_pdf_upload_and_download(client: TestClient, storage: FakeStorageService) -> None:
    quote = _create_quote(client)

    missing = client.get(f"/quotes/{quote['id']}/pdf", headers=HEADERS)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "quote pdf not found"

    not_pdf = client.put(
        f"/quotes/{quote['id']}/pdf",
        content=b"plain text",
        headers={**HEADERS, "content-type": "application/pdf"},
    )
    assert not_pdf.status_code == 400

    uploaded = client.put(
        f"/quotes/{quote['id']}/pdf",
        content=PDF,
        headers={**HEADERS, "content-type": "application/pdf"},
    )
    assert uploaded.status_code == 200
    file_key = uploaded.json()["pdf_file_key"]
    assert storage.objects[("quote-documents", file_key)] == PDF

    download = client.get(f"/quotes/{quote['id']}/pdf", headers=HEADERS)
    assert download.status_code == 200
    assert download.json()["download_url"].startswith(f"https://storage.test/quote-documents/{file_key}")


def test_storage_failures_are_masked(client: TestClient, storage: FakeStorageService) -> None:
    quote = _create_quote(client)
    client.put(
        f"/quotes/{quote['id']}/pdf",
        content=PDF,
        headers={**HEADERS, "content-type": "application/pdf"},
    )

    def broken_download(bucket: str, file_key: str):
        raise StorageError("failed to sign url for minio:9000/quote-documents", op="presign download")

    storage.generate_download_url = broken_download  # type: ignore[method-assign]

    response = client.get(f"/quotes/{quote['id']}/pdf", headers=HEADERS)

    assert response.status_code == 500
    assert response.json() == {"detail": "internal error", "kind": "internal"}
