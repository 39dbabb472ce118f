"""Shared fixtures for routine builder tests."""

import json

import pytest

from routine_builder.catalog_store import CatalogStore
from routine_builder.config import Settings
from routine_builder.storage import KeyValueStorage

PRODUCTS = [
    {
        "id": 1,
        "brand": "L'Oréal",
        "name": "Serum",
        "category": "skincare",
        "description": "Hyaluronic acid serum that replumps skin.",
        "image": "https://example.com/serum.jpg",
    },
    {
        "id": 2,
        "brand": "CeraVe",
        "name": "Foaming Facial Cleanser",
        "category": "cleanser",
        "description": "Gel-to-foam cleanser for oily skin.",
        "image": "https://example.com/cleanser.jpg",
    },
    {
        "id": 3,
        "brand": "Maybelline",
        "name": "Sky High Mascara",
        "category": "Makeup",
        "description": "Lengthening mascara with bamboo extract.",
        "image": "https://example.com/mascara.jpg",
    },
]


class FakeResponse:
    def __init__(self, status_code=200, data=None, text=None):
        self.status_code = status_code
        self._data = data
        self.text = text if text is not None else json.dumps(data)

    def json(self):
        if self._data is None:
            raise ValueError("No JSON object could be decoded")
        return self._data

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests

            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Records posts and replays queued responses or exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.posts = []
        self.gets = []

    def _next(self):
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self._next()

    def get(self, url, timeout=None):
        self.gets.append(url)
        return self._next()


class FakeClient:
    """Completion client stand-in returning canned answers or raising errors."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def complete(self, messages):
        self.calls.append(list(messages))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def ok(content):
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps({"products": PRODUCTS}), encoding="utf-8")
    return path


@pytest.fixture
def catalog(catalog_file):
    store = CatalogStore()
    store.load(catalog_file)
    return store


@pytest.fixture
def storage(tmp_path):
    return KeyValueStorage(tmp_path / "storage.json")


@pytest.fixture
def settings(tmp_path, catalog_file):
    return Settings(
        completion_endpoint_url="https://worker.example.com/",
        catalog_source=str(catalog_file),
        selection_store_path=tmp_path / "storage.json",
        search_debounce_ms=300,
        request_timeout_seconds=5.0,
        max_attempts=1,
        retry_backoff_seconds=0.5,
    )
