import os
import tempfile

# Settings are read at import time; keep the default store out of the repo.
os.environ.setdefault("USER_STORE_PATH", os.path.join(tempfile.mkdtemp(), "db.json"))
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-secret")
os.environ.setdefault("GOOGLE_REDIRECT_URI", "http://localhost:3000/oauth2callback")

import pytest
from fastapi.testclient import TestClient

from calendar_dashboard.cache import EventCache
from calendar_dashboard.config import Settings
from calendar_dashboard.main import create_app
from calendar_dashboard.schemas import TokenBundle
from calendar_dashboard.store import UserStore


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGoogle:
    """Stands in for GoogleClient; records calls and returns canned data."""

    def __init__(self):
        self.items: list[dict] = []
        self.list_calls = 0
        self.list_error: Exception | None = None
        self.tokens = TokenBundle(access_token="ya29.access", id_token="id.jwt", token_type="Bearer")
        self.exchange_error: Exception | None = None
        self.id_token_email: str | Exception | None = None
        self.userinfo_email: str | Exception | None = None
        self.tokeninfo_email: str | Exception | None = None
        self.lookups: list[str] = []

    def authorization_url(self) -> str:
        return "https://accounts.google.com/o/oauth2/auth?client_id=test"

    def exchange_code(self, code):
        if self.exchange_error:
            raise self.exchange_error
        return self.tokens

    def _answer(self, name, value):
        self.lookups.append(name)
        if isinstance(value, Exception):
            raise value
        return value

    def email_from_id_token(self, token):
        return self._answer("id_token", self.id_token_email)

    def email_from_userinfo(self, tokens):
        return self._answer("userinfo", self.userinfo_email)

    def email_from_tokeninfo(self, tokens):
        return self._answer("tokeninfo", self.tokeninfo_email)

    def list_upcoming_events(self, tokens, max_results=20):
        self.list_calls += 1
        if self.list_error:
            raise self.list_error
        return list(self.items)


def raw_event(id, start="2030-01-01T10:00:00Z", end="2030-01-01T11:00:00Z", **extra):
    it = {"id": id, "status": "confirmed", "start": {"dateTime": start}, "end": {"dateTime": end}}
    it.update(extra)
    return it


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
def store(tmp_path):
    s = UserStore(tmp_path / "db.json")
    s.init()
    return s


@pytest.fixture
def cache(clock):
    return EventCache(clock=clock)


@pytest.fixture
def settings(tmp_path):
    return Settings(USER_STORE_PATH=str(tmp_path / "db.json"), RATE_LIMIT_MAX_REQUESTS=1000)


@pytest.fixture
def client(settings, store, cache, google):
    app = create_app(settings=settings, store=store, cache=cache, google=google)
    return TestClient(app)


@pytest.fixture
def alice(store):
    store.save("alice@example.com", TokenBundle(access_token="ya29.alice", refresh_token="1//r"))
    return {"X-User-Email": "alice@example.com"}
