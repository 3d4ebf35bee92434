"""
HTTP Surface Test Suite

Tests covering:
- /data reads and admin writes, error statuses and bodies
- /feeds/{name} merged views
- /social-cache and /social-refresh
- /chat validation and local answers
- CORS preflight and /health
"""
import json

import pytest
from fastapi.testclient import TestClient

from conftest import BlobStore

TOKEN = "s3cret"


class RecordingBackend:
    def __init__(self, reply="Generated reply."):
        self.reply = reply
        self.calls = []

    def complete(self, system, prompt):
        self.calls.append(prompt)
        return self.reply


def _client(tmp_path, knowledge_dir=None, blobs=None, backend=None, store_url="https://store.test", **settings):
    from clubsite.app import build_services, create_app
    from clubsite.config import Settings

    data_dir = tmp_path / "data"
    data_dir.mkdir(exist_ok=True)
    config = Settings(
        admin_token=settings.pop("admin_token", TOKEN),
        data_dir=data_dir,
        knowledge_base_dir=knowledge_dir or tmp_path,
        default_knowledge=("knowledge.json",),
        remote_store_url=store_url,
        **settings,
    )
    blobs = blobs or BlobStore()
    services = build_services(config, backend=backend, remote_transport=blobs.transport)
    return TestClient(create_app(services=services)), data_dir


# ── /data Tests ────────────────────────────────────────────────

class TestDataEndpoint:
    @pytest.mark.parametrize("headers", [{}, {"X-Admin-Token": TOKEN}, {"X-Admin-Token": "wrong"}])
    def test_unknown_name_is_400_for_reads(self, tmp_path, headers):
        client, _ = _client(tmp_path)
        resp = client.get("/data", params={"name": "unknown"}, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid name"}

    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
    def test_unknown_name_is_400_for_other_methods(self, tmp_path, method):
        client, _ = _client(tmp_path)
        resp = client.request(method, "/data", params={"name": "unknown"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid name"}

    def test_missing_name_is_400(self, tmp_path):
        client, _ = _client(tmp_path)
        assert client.get("/data").status_code == 400

    def test_unsupported_method_on_valid_name(self, tmp_path):
        client, _ = _client(tmp_path)
        assert client.delete("/data", params={"name": "board"}).status_code == 405

    def test_reads_bundled_file_when_remote_down(self, tmp_path):
        doc = {"members": [{"name": "A", "role": "President"}]}
        client, data_dir = _client(tmp_path, blobs=BlobStore(status=503))
        (data_dir / "board.json").write_text(json.dumps(doc))

        resp = client.get("/data", params={"name": "board"})
        assert resp.status_code == 200
        assert resp.json() == doc

    def test_reads_remote_document(self, tmp_path):
        blobs = BlobStore({"site-data/directors.json": {"members": [{"name": "Remote"}]}})
        client, _ = _client(tmp_path, blobs=blobs)
        assert client.get("/data", params={"name": "directors"}).json() == {"members": [{"name": "Remote"}]}

    def test_not_found_at_any_tier(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.get("/data", params={"name": "newsletters"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    def test_null_bundled_file_is_404(self, tmp_path):
        client, data_dir = _client(tmp_path, store_url="")
        (data_dir / "board.json").write_text("null")

        resp = client.get("/data", params={"name": "board"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    def test_plain_options_validates_name(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.options("/data", params={"name": "unknown"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid name"}
        assert client.options("/data", params={"name": "board"}).status_code == 204

    @pytest.mark.parametrize("headers", [{}, {"X-Admin-Token": ""}, {"X-Admin-Token": "wrong"}])
    def test_write_requires_token(self, tmp_path, headers):
        blobs = BlobStore()
        client, _ = _client(tmp_path, blobs=blobs)
        resp = client.post("/data", params={"name": "board"}, json={"members": []}, headers=headers)
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}
        assert blobs.requests == []

    def test_write_refused_without_configured_secret(self, tmp_path):
        client, _ = _client(tmp_path, admin_token="")
        resp = client.post("/data", params={"name": "board"}, json={}, headers={"X-Admin-Token": ""})
        assert resp.status_code == 401

    def test_write_with_token_validates_name(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.post("/data", params={"name": "unknown"}, json={}, headers={"X-Admin-Token": TOKEN})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid name"}

    def test_write_then_read(self, tmp_path):
        blobs = BlobStore()
        client, _ = _client(tmp_path, blobs=blobs)
        doc = {"members": [{"name": "New", "role": "Secretary"}]}

        resp = client.post("/data", params={"name": "board"}, json=doc, headers={"X-Admin-Token": TOKEN})
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert client.get("/data", params={"name": "board"}).json() == doc

    def test_write_failure_is_ok_false(self, tmp_path):
        client, _ = _client(tmp_path, store_url="")
        resp = client.post("/data", params={"name": "board"}, json={}, headers={"X-Admin-Token": TOKEN})
        assert resp.status_code == 200
        assert resp.json()["ok"] is False

    def test_write_with_non_json_body(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.post(
            "/data",
            params={"name": "board"},
            content=b"not json",
            headers={"X-Admin-Token": TOKEN, "Content-Type": "application/json"},
        )
        assert resp.status_code == 200
        assert resp.json()["ok"] is False


# ── /feeds Tests ───────────────────────────────────────────────

class TestFeedsEndpoint:
    def test_projects_merged_with_social_cache(self, tmp_path):
        blobs = BlobStore({
            "social-cache/ig_projects.json": {
                "updatedAt": "2024-03-01T00:00:00+00:00",
                "items": [
                    {"title": "Older", "timestamp": "2024-01-05T00:00:00+0000"},
                    {"title": "Newer", "timestamp": "2024-02-05T00:00:00+0000"},
                ],
            },
        })
        client, data_dir = _client(tmp_path, blobs=blobs)
        (data_dir / "projects.json").write_text(json.dumps({"projects": [{"title": "A"}, {"title": "B"}]}))

        body = client.get("/feeds/projects").json()
        assert [p["title"] for p in body["projects"]] == ["Newer", "Older", "A", "B"]
        assert body["updatedAt"] == "2024-03-01T00:00:00+00:00"

    def test_projects_without_cache_is_static(self, tmp_path):
        client, data_dir = _client(tmp_path, blobs=BlobStore(status=503))
        (data_dir / "projects.json").write_text(json.dumps({"projects": [{"title": "A"}, {"title": "B"}]}))

        body = client.get("/feeds/projects").json()
        assert [p["title"] for p in body["projects"]] == ["A", "B"]

    def test_newsletters_newest_first(self, tmp_path):
        client, data_dir = _client(tmp_path)
        (data_dir / "newsletters.json").write_text(json.dumps({"issues": [
            {"month": "Jan", "date": "2025-01-01"},
            {"month": "Jun", "date": "2025-06-01"},
        ]}))
        body = client.get("/feeds/newsletters").json()
        assert [i["month"] for i in body["issues"]] == ["Jun", "Jan"]

    def test_unknown_feed(self, tmp_path):
        client, _ = _client(tmp_path)
        assert client.get("/feeds/members").status_code == 400

    def test_missing_feed(self, tmp_path):
        client, _ = _client(tmp_path)
        assert client.get("/feeds/board").status_code == 404


# ── Social Tests ───────────────────────────────────────────────

class TestSocialEndpoints:
    def test_cache_empty_shape(self, tmp_path):
        client, _ = _client(tmp_path, store_url="")
        assert client.get("/social-cache").json() == {"updatedAt": None, "items": []}

    def test_refresh_requires_token(self, tmp_path):
        client, _ = _client(tmp_path)
        assert client.post("/social-refresh").status_code == 401

    def test_refresh_without_credentials(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.post("/social-refresh", headers={"X-Admin-Token": TOKEN})
        assert resp.status_code == 200
        assert resp.json()["ok"] is False


# ── /chat Tests ────────────────────────────────────────────────

class TestChatEndpoint:
    @pytest.mark.parametrize("body", [{}, {"question": ""}, {"question": "   "}])
    def test_blank_question(self, tmp_path, body):
        client, _ = _client(tmp_path)
        resp = client.post("/chat", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing question"}

    def test_malformed_body(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.post("/chat", json={"question": ["not", "text"]})
        assert resp.status_code == 400

    def test_local_join_answer(self, tmp_path, knowledge_dir):
        client, _ = _client(tmp_path, knowledge_dir=knowledge_dir)
        resp = client.post("/chat", json={"question": "How to join?"})
        assert resp.status_code == 200
        assert resp.json() == {"answer": "Fill out the form https://x/y", "source": "local"}

    def test_generated_answer(self, tmp_path, knowledge_dir):
        backend = RecordingBackend()
        client, _ = _client(tmp_path, knowledge_dir=knowledge_dir, backend=backend)
        resp = client.post("/chat", json={"question": "What is Leo all about?"})
        assert resp.json() == {"answer": "Generated reply.", "source": "generated"}
        assert len(backend.calls) == 1

    def test_context_files_override_default(self, tmp_path, knowledge_dir):
        (knowledge_dir / "extra.json").write_text(json.dumps({"club": {"motto": "We Serve Together"}}))
        client, _ = _client(tmp_path, knowledge_dir=knowledge_dir)
        resp = client.post("/chat", json={"question": "motto?", "contextFiles": ["knowledge.json", "extra.json"]})
        assert resp.json()["answer"] == "We Serve Together"


# ── Cross-cutting Tests ────────────────────────────────────────

class TestCrossCutting:
    def test_cors_preflight_for_admin_write(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.options(
            "/data",
            params={"name": "board"},
            headers={
                "Origin": "https://club.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-Admin-Token",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_cors_header_on_error_response(self, tmp_path):
        client, _ = _client(tmp_path)
        resp = client.post("/data", params={"name": "board"}, headers={"Origin": "https://club.example"})
        assert resp.status_code == 401
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_health(self, tmp_path):
        client, _ = _client(tmp_path, store_url="")
        body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["components"]["remote_store"]["status"] == "disabled"
        assert body["components"]["generative"]["status"] == "disabled"
