"""Shared fixtures: in-memory store, sample users and a mocked sheet endpoint."""

import json

import httpx
import pytest

from production_dashboard.cache import MemoryCache
from production_dashboard.models import OffDay, ProductionEntry, User
from production_dashboard.sheets import SheetsAdapter
from production_dashboard.store import RecordStore

SHEET_URL = "https://sheets.example.test/exec"


def make_entry(**overrides) -> ProductionEntry:
    fields = {
        "id": "e1",
        "date": "2025-01-05",
        "category": "A",
        "process": "Mixing",
        "product_name": "Gel 50g",
        "plan_quantity": 100,
        "actual_quantity": 80,
    }
    fields.update(overrides)
    return ProductionEntry(**fields)


class FakeSheet:
    """Records requests and answers GETs from a per-action table."""

    def __init__(self, responses: dict | None = None):
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, text="ok")

        action = request.url.params.get("action")
        answer = self.responses.get(action)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        if answer is None:
            return httpx.Response(404, text="unknown action")
        return httpx.Response(200, json=answer)

    def posted(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def store(cache):
    s = RecordStore(cache, seed=False)
    yield s
    s.close()


@pytest.fixture
def fake_sheet():
    return FakeSheet()


@pytest.fixture
def remote_store(cache, fake_sheet):
    adapter = SheetsAdapter(SHEET_URL, timeout=5, transport=httpx.MockTransport(fake_sheet))
    s = RecordStore(cache, adapter, seed=False)
    yield s
    s.close()


@pytest.fixture
def admin():
    return User(id="1", name="Admin", username="admin", email="a@x.test", role="admin", password="pw")


@pytest.fixture
def manager():
    return User(id="2", name="Manager", username="manager", email="m@x.test", role="manager", password="pw")


@pytest.fixture
def planner():
    return User(id="3", name="Planner", username="planner", email="p@x.test", role="planner", password="pw")


@pytest.fixture
def operator():
    return User(id="4", name="Operator", username="operator", email="o@x.test", role="operator", password="pw")


@pytest.fixture
def seeded_users(store, admin, manager, planner, operator):
    store.save_users([admin, manager, planner, operator])
    return store


@pytest.fixture
def off_days():
    return [OffDay(date="2025-01-01", description="New Year's Day")]
