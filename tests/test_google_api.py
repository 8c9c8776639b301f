from datetime import datetime
from urllib.parse import parse_qs, urlparse

import pytest
from google_auth_oauthlib.flow import Flow

from calendar_dashboard.config import Settings
from calendar_dashboard.google_api import GOOGLE_SCOPES, TOKEN_URI, GoogleClient
from calendar_dashboard.schemas import TokenBundle


@pytest.fixture
def real_google(tmp_path):
    return GoogleClient(Settings(
        GOOGLE_CLIENT_ID="cid.apps.googleusercontent.com",
        GOOGLE_CLIENT_SECRET="shh",
        GOOGLE_REDIRECT_URI="http://localhost:3000/oauth2callback",
        USER_STORE_PATH=str(tmp_path / "db.json"),
    ))


def test_authorization_url_requests_offline_access(real_google):
    url = real_google.authorization_url()
    qs = parse_qs(urlparse(url).query)
    assert url.startswith("https://accounts.google.com/o/oauth2/auth")
    assert qs["client_id"] == ["cid.apps.googleusercontent.com"]
    assert qs["redirect_uri"] == ["http://localhost:3000/oauth2callback"]
    assert qs["access_type"] == ["offline"]
    assert qs["scope"][0].split() == list(GOOGLE_SCOPES)


def test_exchange_code_builds_bundle(real_google, monkeypatch):
    def fake_fetch_token(self, **kwargs):
        assert kwargs == {"code": "4/abc"}
        self.oauth2session.token = {
            "access_token": "ya29.new",
            "refresh_token": "1//refresh",
            "id_token": "header.payload.sig",
            "token_type": "Bearer",
            "expires_at": 1_900_000_000.0,
        }
        return self.oauth2session.token

    monkeypatch.setattr(Flow, "fetch_token", fake_fetch_token)
    bundle = real_google.exchange_code("4/abc")
    assert bundle.access_token == "ya29.new"
    assert bundle.refresh_token == "1//refresh"
    assert bundle.id_token == "header.payload.sig"
    assert bundle.token_type == "Bearer"
    assert bundle.expiry == datetime(2030, 3, 17, 17, 46, 40)
    assert "https://www.googleapis.com/auth/calendar.readonly" in bundle.scope.split()


def test_credentials_from_bundle(real_google):
    tokens = TokenBundle(
        access_token="ya29",
        refresh_token="1//r",
        expiry=datetime(2030, 1, 1, 12, 0),
        scope="openid email",
    )
    creds = real_google.credentials(tokens)
    assert creds.token == "ya29"
    assert creds.refresh_token == "1//r"
    assert creds.token_uri == TOKEN_URI
    assert creds.client_id == "cid.apps.googleusercontent.com"
    assert creds.client_secret == "shh"
    assert creds.scopes == ["openid", "email"]
    assert creds.expiry == datetime(2030, 1, 1, 12, 0)
    assert not creds.expired
