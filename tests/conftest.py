"""
Pytest configuration and fixtures for Rollcall tests.
"""

import os

# Settings are validated at import time; set them before importing rollcall
os.environ.setdefault("FIREBASE_CREDENTIALS_PATH", "/tmp/rollcall-test-service-account.json")
os.environ.setdefault("FIREBASE_API_KEY", "test-api-key")
os.environ.setdefault("FIREBASE_PROJECT_ID", "rollcall-test")
os.environ.setdefault("DISPLAY_TIMEZONE", "UTC")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from rollcall.api.deps import SessionUser, get_current_user  # noqa: E402
from rollcall.main import app  # noqa: E402
from rollcall.models.attendance import AttendanceRow  # noqa: E402

TEST_USER = SessionUser(
    uid="uid-123",
    name="Test Teacher",
    email="teacher@example.com",
    picture="https://lh3.googleusercontent.com/a/photo",
)


class RecordingSink:
    """Presentation sink that keeps an ordered list of slots and a log of calls."""

    def __init__(self):
        self.rows: list[tuple[str, AttendanceRow]] = []
        self.visible: set[str] = set()
        self.calls: list[tuple] = []

    @property
    def identities(self):
        return [identity for identity, _ in self.rows]

    def record(self, identity):
        for ident, row in self.rows:
            if ident == identity:
                return row
        return None

    def insert_at(self, identity, record, before):
        self.calls.append(("insert_at", identity, before))
        index = len(self.rows)
        if before is not None:
            index = self.identities.index(before)
        self.rows.insert(index, (identity, record))

    def update_in_place(self, identity, record):
        self.calls.append(("update_in_place", identity))
        index = self.identities.index(identity)
        self.rows[index] = (identity, record)

    def remove(self, identity):
        self.calls.append(("remove", identity))
        self.rows = [(i, r) for i, r in self.rows if i != identity]

    def mark_visible(self, identity):
        self.calls.append(("mark_visible", identity))
        self.visible.add(identity)


class ManualScheduler:
    """Collects scheduled callbacks; tests run them explicitly."""

    class Handle:
        def __init__(self, callback):
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles: list["ManualScheduler.Handle"] = []

    def __call__(self, delay, callback):
        handle = self.Handle(callback)
        self.handles.append(handle)
        return handle

    def run_all(self):
        for handle in list(self.handles):
            if not handle.cancelled:
                handle.callback()
        self.handles.clear()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def signed_in():
    """Bypass Firebase token verification for HTTP routes."""
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    yield TEST_USER
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def async_client():
    """Async HTTP client against the ASGI app (lifespan not run: no MongoDB, no Firebase)."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
