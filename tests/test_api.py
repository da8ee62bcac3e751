"""Tests for the REST endpoints."""
from __future__ import annotations

import json
import os

import pytest
from fastapi.testclient import TestClient

# Set env vars BEFORE importing the app, which caches its settings
os.environ["CM_STORAGE_BACKEND"] = "memory"
os.environ.pop("CM_AUTO_BACKUP", None)

from api.dependencies import get_store  # noqa: E402
from api.main import app  # noqa: E402
from contact_manager.contacts import ContactStore  # noqa: E402
from contact_manager.storage import InMemoryStorage  # noqa: E402


JOHN = {
    "firstName": "John",
    "lastName": "Doe",
    "email": "john.doe@example.com",
    "phone": "(555) 123-4567",
    "company": "Acme",
    "tags": ["work", "client"],
}

JANE = {
    "firstName": "Jane",
    "lastName": "Smith",
    "email": "jane.smith@example.com",
    "phone": "(555) 987-6543",
    "tags": ["friend"],
}


@pytest.fixture
def store():
    return ContactStore(InMemoryStorage(), slot="api-contacts")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def john(client):
    return client.post("/contacts", json=JOHN).json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "storage" in body


class TestContactCrud:
    """Tests for create/get/update/delete."""

    def test_create(self, client):
        response = client.post("/contacts", json=JOHN)
        assert response.status_code == 201
        body = response.json()
        assert body["id"]
        assert body["isFavorite"] is False
        assert body["createdAt"] == body["updatedAt"]
        assert body["tags"] == ["work", "client"]

    def test_create_ignores_managed_fields(self, client):
        body = client.post("/contacts", json=JOHN | {"id": "mine", "isFavorite": True}).json()
        assert body["id"] != "mine"
        assert body["isFavorite"] is False

    def test_create_keeps_unknown_fields(self, client):
        body = client.post("/contacts", json=JOHN | {"website": "https://example.com"}).json()
        assert body["website"] == "https://example.com"

    def test_create_rejects_invalid_form(self, client):
        response = client.post("/contacts", json=JOHN | {"email": "nope", "phone": "1"})
        assert response.status_code == 422
        errors = response.json()["detail"]["errors"]
        assert [error["field"] for error in errors] == ["email", "phone"]

    def test_create_requires_names(self, client):
        response = client.post("/contacts", json={"email": "a@b.co"})
        assert response.status_code == 422

    def test_get(self, client, john):
        response = client.get(f"/contacts/{john['id']}")
        assert response.status_code == 200
        assert response.json() == john

    def test_get_missing(self, client):
        assert client.get("/contacts/unknown").status_code == 404

    def test_update(self, client, john):
        response = client.patch(f"/contacts/{john['id']}", json={"notes": "met at conference"})
        assert response.status_code == 200
        body = response.json()
        assert body["notes"] == "met at conference"
        assert body["firstName"] == "John"
        assert body["tags"] == ["work", "client"]
        assert body["createdAt"] == john["createdAt"]
        assert body["updatedAt"] > john["updatedAt"]

    def test_update_validates_given_fields(self, client, john):
        response = client.patch(f"/contacts/{john['id']}", json={"email": "broken"})
        assert response.status_code == 422

    def test_update_missing(self, client):
        assert client.patch("/contacts/unknown", json={"notes": "x"}).status_code == 404

    def test_delete(self, client, john):
        response = client.delete(f"/contacts/{john['id']}")
        assert response.status_code == 200
        assert response.json() == {"deleted": True, "id": john["id"]}
        assert client.delete(f"/contacts/{john['id']}").status_code == 404

    def test_toggle_favorite(self, client, john):
        first = client.post(f"/contacts/{john['id']}/favorite").json()
        second = client.post(f"/contacts/{john['id']}/favorite").json()
        assert first["isFavorite"] is True
        assert second["isFavorite"] is False
        assert client.post("/contacts/unknown/favorite").status_code == 404


class TestListAndSearch:
    """Tests for GET /contacts query parameters."""

    @pytest.fixture(autouse=True)
    def contacts(self, client):
        john = client.post("/contacts", json=JOHN).json()
        client.post("/contacts", json=JANE)
        client.post(f"/contacts/{john['id']}/favorite")

    def _names(self, response):
        return [c["firstName"] for c in response.json()["contacts"]]

    def test_list_all(self, client):
        response = client.get("/contacts")
        assert response.json()["count"] == 2

    def test_search_text(self, client):
        assert self._names(client.get("/contacts", params={"search": "acme"})) == ["John"]

    def test_tags_any(self, client):
        response = client.get("/contacts", params=[("tags", "client"), ("tags", "friend")])
        assert response.json()["count"] == 2

    def test_favorite_filter(self, client):
        assert self._names(client.get("/contacts", params={"isFavorite": "false"})) == ["Jane"]

    def test_sort(self, client):
        response = client.get("/contacts", params={"sortBy": "firstName", "sortOrder": "desc"})
        assert self._names(response) == ["John", "Jane"]

    def test_bad_sort_field(self, client):
        assert client.get("/contacts", params={"sortBy": "phone"}).status_code == 422

    def test_stats(self, client):
        assert client.get("/contacts/stats").json() == {
            "total": 2,
            "favorites": 1,
            "withEmail": 2,
            "withPhone": 2,
            "byTag": {"work": 1, "client": 1, "friend": 1},
        }


class TestExportImport:
    """Tests for export, import and clearing."""

    def test_export_is_json_attachment(self, client, john):
        response = client.get("/contacts/export")
        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert json.loads(response.text) == [john]

    def test_import_text_into_empty_store(self, client, john, store):
        exported = client.get("/contacts/export").text
        client.delete("/contacts", params={"confirm": "true"})

        response = client.post("/contacts/import", json={"data": exported})

        assert response.json() == {"imported": 1, "total": 1}
        assert store.get(john["id"]).to_dict() == john

    def test_import_array_skips_existing(self, client, john):
        records = [john, {"id": "new-1", "firstName": "New", "lastName": "Person"}, {"firstName": "NoId"}]
        response = client.post("/contacts/import", json={"data": records})
        assert response.json() == {"imported": 1, "total": 2}

    def test_import_invalid_text(self, client):
        response = client.post("/contacts/import", json={"data": "{not json"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid import data format"

    def test_clear_requires_confirm(self, client, john):
        assert client.delete("/contacts").status_code == 400
        assert client.delete("/contacts", params={"confirm": "true"}).json() == {"cleared": True}
        assert client.get("/contacts").json()["count"] == 0


class TestBackupsAndMaintenance:
    """Tests for /backups and /maintenance."""

    def test_backup_and_restore(self, client, john):
        reference = client.post("/backups").json()["reference"]
        assert client.get("/backups").json() == {"backups": [reference]}

        client.delete("/contacts", params={"confirm": "true"})
        response = client.post("/backups/restore", json={"reference": reference})

        assert response.json() == {"reference": reference, "restored": 1, "total": 1}
        assert client.get(f"/contacts/{john['id']}").json() == john

    def test_restore_unknown_reference(self, client):
        response = client.post("/backups/restore", json={"reference": "api-contacts.backup.1"})
        assert response.json()["restored"] == 0

    def test_vacuum(self, client, john):
        assert client.post("/maintenance/vacuum").json() == {"status": "ok"}
        assert client.get("/contacts").json()["count"] == 1

    def test_analyze(self, client, john):
        body = client.get("/maintenance/analyze").json()
        assert body["contactCount"] == 1
        assert body["slot"] == "api-contacts"
