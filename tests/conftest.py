import json
import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


KNOWLEDGE = {
    "club": {
        "name": "Leo Club of Colombo Alpha Central",
        "aliases": ["LCAC"],
        "description": "a youth service club in Colombo.",
        "motto": "Leadership, Experience, Opportunity",
        "join": {"how": "Fill out the form", "formUrl": "https://x/y"},
        "contact": {"email": "hello@lcac.test", "social": {"instagram": "@lcac"}},
        "board": {"year": "2025/26", "note": "Officers are listed on the Board page."},
        "projects": [
            {"title": "Blood Drive", "description": "Annual donation camp."},
            {"title": "Reading Corners"},
            {"title": "Beach Clean-up"},
            {"title": "Tree Planting"},
        ],
    },
    "leo_general": {
        "what_is_leo": "LEO stands for Leadership, Experience, Opportunity.",
        "age_range": "Leos are 12 to 30.",
        "benefits": "Leadership skills and friendships.",
        "activities": "Service projects and trainings.",
    },
}


class BlobStore:
    """In-memory stand-in for the remote document store, served over httpx.MockTransport."""

    def __init__(self, blobs=None, status=None):
        self.blobs = dict(blobs or {})
        self.status = status
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status is not None:
            return httpx.Response(self.status)
        key = request.url.path.lstrip("/")
        if request.method == "GET":
            if key in self.blobs:
                return httpx.Response(200, json=self.blobs[key])
            return httpx.Response(404)
        if request.method == "PUT":
            self.blobs[key] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True})
        return httpx.Response(405)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def knowledge_dir(tmp_path):
    (tmp_path / "knowledge.json").write_text(json.dumps(KNOWLEDGE))
    return tmp_path


@pytest.fixture
def blob_store():
    return BlobStore()
