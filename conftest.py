import json

import httpx
import pytest

from semantix import settings_store
from semantix.backend_client import BackendClient
from semantix.models.lore_entry import LoreEntry, WorldBook


# Every test gets its own settings database
@pytest.fixture(autouse=True)
def settings_db(tmp_path, monkeypatch):
    db_path = tmp_path / "settings.db"
    monkeypatch.setattr(settings_store, "DB_PATH", str(db_path))
    return db_path


@pytest.fixture
def world_book():
    """Lore book with entries 10..20."""
    return WorldBook(
        name="Eldoria",
        entries=[
            LoreEntry(uid=i, content=f"Lore text for entry {i}", comment=f"Entry {i}")
            for i in range(10, 21)
        ],
    )


class RecordingBackend:
    """Mock vectorization backend that records every request body."""

    def __init__(self, store_status=200, search_status=200, search_results=None):
        self.requests = []
        self.store_status = store_status
        self.search_status = search_status
        self.search_results = search_results if search_results is not None else []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request.url.path, body))
        if request.url.path == "/vectorize-and-store":
            if self.store_status != 200:
                return httpx.Response(self.store_status, json={"error": "boom"})
            return httpx.Response(200, json={
                "chunksProcessed": len(body["entries"]) * 2,
                "pointsStored": len(body["entries"]) * 2,
            })
        if request.url.path == "/search":
            if self.search_status != 200:
                return httpx.Response(self.search_status, text="unavailable")
            return httpx.Response(200, json={
                "results": [{"score": 0.9, "payload": {"content": c}} for c in self.search_results]
            })
        return httpx.Response(404)

    def client_factory(self, settings):
        return BackendClient(base_url="http://backend.test", transport=httpx.MockTransport(self.handler))


@pytest.fixture
def backend():
    return RecordingBackend()
