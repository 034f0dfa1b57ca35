"""HTTP 어댑터를 통한 콘텐츠 편집/버전/릴리스/잠금 시나리오 테스트입니다."""

import pytest


@pytest.fixture
def editor(auth_headers, seed_users):
    return auth_headers("editor001")


@pytest.fixture
def collection_id(client, editor):
    resp = client.post("/api/collections", json={"name": "Docs"}, headers=editor)
    assert resp.status_code == 200, resp.text
    return resp.json()["collection_id"]


@pytest.fixture
def content_id(client, editor, collection_id):
    resp = client.post(
        f"/api/collections/{collection_id}/contents",
        json={
            "title": "Getting Started",
            "metadata": {"lang": "en"},
            "elements": [
                {"id": "h1", "type": "heading", "data": {"text": "Start"}},
                {"id": "list", "type": "list", "children": [
                    {"id": "li1", "type": "item", "data": {"text": "one"}},
                    {"id": "li2", "type": "item", "data": {"text": "two"}},
                ]},
            ],
        },
        headers=editor,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["content_id"]


def test_create_collection_and_content(client, editor, collection_id, content_id):
    resp = client.get(f"/api/collections/{collection_id}", headers=editor)
    assert resp.json()["current_release"] == "Basis"
    assert [r["name"] for r in resp.json()["releases"]] == ["Basis"]

    resp = client.get(f"/api/contents/{content_id}", headers=editor)
    data = resp.json()
    assert data["slug"] == "getting-started"
    assert data["metadata"] == {"lang": "en"}
    assert data["current_version"] == 1
    assert data["status"] == "draft"

    resp = client.get(f"/api/collections/{collection_id}/contents", headers=editor)
    assert [c["content_id"] for c in resp.json()] == [content_id]


def test_viewer_cannot_write(client, auth_headers, content_id):
    viewer = auth_headers("viewer001")
    assert client.get(f"/api/contents/{content_id}", headers=viewer).status_code == 200
    resp = client.put(f"/api/contents/{content_id}", json={"title": "x"}, headers=viewer)
    assert resp.status_code == 403


def test_element_workflow_creates_versions(client, editor, content_id):
    resp = client.post(
        f"/api/contents/{content_id}/elements",
        json={"id": "li3", "type": "item", "data": {"text": "three"}, "parent_id": "list"},
        headers=editor,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["id"] == "li3"

    resp = client.put(f"/api/contents/{content_id}/elements/h1", json={"data": {"text": "Begin"}}, headers=editor)
    assert resp.json()["data"] == {"text": "Begin"}

    resp = client.post(
        f"/api/contents/{content_id}/elements/li3/move",
        json={"parent_id": "list", "position": 0},
        headers=editor,
    )
    children = resp.json()["elements"][1]["children"]
    assert [c["id"] for c in children] == ["li3", "li1", "li2"]

    resp = client.delete(f"/api/contents/{content_id}/elements/li2", headers=editor)
    assert resp.status_code == 200

    resp = client.get(f"/api/contents/{content_id}/versions", headers=editor)
    page = resp.json()
    assert [v["version_number"] for v in page["items"]] == [1, 2, 3, 4, 5]
    assert [v["change_note"] for v in page["items"]][1:] == [
        "Element added", "Element updated", "Element moved", "Element deleted",
    ]
    assert page["next_cursor"] is None


def test_missing_element_returns_404(client, editor, content_id):
    resp = client.put(f"/api/contents/{content_id}/elements/nope", json={"data": {}}, headers=editor)
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_move_into_own_subtree_returns_422(client, editor, content_id):
    resp = client.post(
        f"/api/contents/{content_id}/elements/list/move",
        json={"parent_id": "li1", "position": 0},
        headers=editor,
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"


def test_compare_and_restore(client, editor, content_id):
    client.put(f"/api/contents/{content_id}", json={"title": "Renamed", "change_note": "rename"}, headers=editor)
    client.post(f"/api/contents/{content_id}/publish", headers=editor)

    resp = client.get(f"/api/contents/{content_id}/versions/compare?from=1&to=3", headers=editor)
    assert resp.status_code == 200, resp.text
    diff = resp.json()
    assert diff["title_changed"] is True
    assert diff["status_changed"] is True
    assert diff["elements"] == {"added": [], "removed": [], "changed": [], "moved": []}

    resp = client.post(f"/api/contents/{content_id}/versions/1/restore", headers=editor)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["restored_from"] == 1
    assert body["version"]["version_number"] == 4
    assert body["version"]["snapshot"]["title"] == "Getting Started"

    resp = client.get(f"/api/contents/{content_id}/versions/2", headers=editor)
    assert resp.json()["snapshot"]["title"] == "Renamed"
    assert resp.json()["change_note"] == "rename"

    resp = client.get(f"/api/contents/{content_id}/versions/history", headers=editor)
    assert [item["version"]["version_number"] for item in resp.json()] == [4, 3, 2, 1]


def test_release_and_purge(client, auth_headers, editor, collection_id, content_id):
    client.put(f"/api/contents/{content_id}", json={"title": "v2"}, headers=editor)
    client.put(f"/api/contents/{content_id}", json={"title": "v3"}, headers=editor)

    resp = client.post(f"/api/collections/{collection_id}/releases", json={"name": "v1"}, headers=editor)
    assert resp.status_code == 200, resp.text
    assert resp.json()["position"] == 2

    resp = client.post(f"/api/collections/{collection_id}/releases", json={"name": "v1"}, headers=editor)
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"

    client.put(f"/api/contents/{content_id}", json={"title": "v4"}, headers=editor)
    resp = client.get(f"/api/contents/{content_id}/versions/4", headers=editor)
    assert resp.json()["release"] == "v1"

    resp = client.get(f"/api/collections/{collection_id}/releases/Basis/contents", headers=editor)
    assert [row["version"]["version_number"] for row in resp.json()] == [3]

    assert client.post(f"/api/collections/{collection_id}/purge", headers=editor).status_code == 403

    admin = auth_headers("admin001")
    resp = client.get(f"/api/collections/{collection_id}/purge-preview", headers=admin)
    assert resp.json()["purgeable_count"] == 2
    resp = client.post(f"/api/collections/{collection_id}/purge", headers=admin)
    assert resp.json()["deleted_count"] == 2

    resp = client.get(f"/api/contents/{content_id}/versions", headers=editor)
    assert [v["version_number"] for v in resp.json()["items"]] == [3, 4]


def test_lock_endpoints(client, auth_headers, editor, content_id):
    editor_b = auth_headers("editor002")

    resp = client.post(f"/api/locks/content/{content_id}", json={"reason": "editing"}, headers=editor)
    assert resp.status_code == 200, resp.text
    assert resp.json()["reason"] == "editing"

    resp = client.get("/api/locks/element/li1", headers=editor_b)
    status = resp.json()
    assert status["is_locked"] is True
    assert status["source_level"] == "content"

    resp = client.put(f"/api/contents/{content_id}", json={"title": "B"}, headers=editor_b)
    assert resp.status_code == 423
    body = resp.json()
    assert body["code"] == "resource_locked"
    assert body["lock_info"]["source_level"] == "self"
    assert body["lock_info"]["reason"] == "editing"

    resp = client.put(f"/api/contents/{content_id}/elements/li1", json={"data": {"text": "B"}}, headers=editor_b)
    assert resp.status_code == 423
    assert resp.json()["lock_info"]["source_level"] == "content"

    resp = client.post(f"/api/locks/content/{content_id}", headers=editor_b)
    assert resp.status_code == 409
    assert resp.json()["lock_info"]["locked_by_name"] == "Editor A"

    assert client.delete(f"/api/locks/content/{content_id}", headers=editor_b).status_code == 403
    assert client.delete(f"/api/locks/content/{content_id}", headers=editor).status_code == 200

    resp = client.get(f"/api/locks/content/{content_id}", headers=editor_b)
    assert resp.json()["is_locked"] is False
    resp = client.put(f"/api/contents/{content_id}", json={"title": "B"}, headers=editor_b)
    assert resp.status_code == 200


def test_lock_endpoint_normalizes_numeric_ids(client, auth_headers, editor, content_id):
    editor_b = auth_headers("editor002")

    resp = client.post(f"/api/locks/content/0{content_id}", headers=editor)
    assert resp.status_code == 200, resp.text
    assert resp.json()["resource_id"] == str(content_id)

    resp = client.post(f"/api/locks/content/{content_id}", headers=editor_b)
    assert resp.status_code == 409
    resp = client.put(f"/api/contents/{content_id}", json={"title": "B"}, headers=editor_b)
    assert resp.status_code == 423

    assert client.delete(f"/api/locks/content/00{content_id}", headers=editor).status_code == 200
    assert client.get(f"/api/locks/content/{content_id}", headers=editor_b).json()["is_locked"] is False
