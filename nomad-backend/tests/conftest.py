"""Shared test fixtures and configuration.

Sets environment defaults before any application import, and provides record
stores, a fake Gemini service and an HTTP client wired to them.
"""

import os

# Patch env vars BEFORE any application imports
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("DEMO_USER_ID", "1")
os.environ.setdefault("GEMINI_API_KEY", "fake-gemini-key-for-tests")

import pytest
from fastapi.testclient import TestClient

from database import build_storage, get_storage
from seed import seed_demo_data
from services.gemini_service import get_gemini_service
from storage import MemStorage


class FakeGeminiService:
    """Stands in for GeminiService; records prompts and returns a canned answer."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {"ok": True}
        self.error = error
        self.prompts = []

    async def generate_json(self, prompt, system_instruction=None, temperature=0.4):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture
def sql_storage():
    """SQL backend on a private in-memory SQLite database."""
    return build_storage("sql", "sqlite://")


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    """Each contract test runs once per backend."""
    return build_storage(request.param, "sqlite://")


@pytest.fixture
def seeded_storage(mem_storage):
    seed_demo_data(mem_storage)
    return mem_storage


@pytest.fixture
def fake_gemini():
    return FakeGeminiService(result={"hasConflict": False, "suggestedSolutions": []})


@pytest.fixture
def app():
    from main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_client(app, fake_gemini):
    """Build a TestClient over the given store (lifespan, and so seeding, is not run)."""

    def _make(storage, gemini=None):
        app.dependency_overrides[get_storage] = lambda: storage
        app.dependency_overrides[get_gemini_service] = lambda: gemini or fake_gemini
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, seeded_storage):
    return make_client(seeded_storage)
