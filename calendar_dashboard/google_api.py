from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, Sequence

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from calendar_dashboard.config import Settings
from calendar_dashboard.schemas import TokenBundle

# Google widens "email" to "userinfo.email" in the token response.
os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")

GOOGLE_SCOPES: Sequence[str] = (
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/userinfo.email",
    "openid",
    "email",
)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleClient:
    """Thin wrapper over the Google SDKs used by the dashboard.

    Everything that talks to Google goes through this class so handlers and
    tests can swap in a fake.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _client_config(self) -> dict:
        return {
            "web": {
                "client_id": self.settings.GOOGLE_CLIENT_ID,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": TOKEN_URI,
                "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
                "client_secret": self.settings.GOOGLE_CLIENT_SECRET,
                "redirect_uris": [self.settings.GOOGLE_REDIRECT_URI],
            }
        }

    def new_flow(self) -> Flow:
        # The callback builds a fresh flow, so there is no PKCE verifier to carry over.
        flow = Flow.from_client_config(
            self._client_config(),
            scopes=list(GOOGLE_SCOPES),
            autogenerate_code_verifier=False,
        )
        flow.redirect_uri = self.settings.GOOGLE_REDIRECT_URI
        return flow

    def authorization_url(self) -> str:
        auth_url, _state = self.new_flow().authorization_url(access_type="offline")
        return auth_url

    def exchange_code(self, code: str) -> TokenBundle:
        flow = self.new_flow()
        flow.fetch_token(code=code)
        creds = flow.credentials
        return TokenBundle(
            access_token=creds.token,
            refresh_token=creds.refresh_token,
            expiry=creds.expiry,
            token_type=flow.oauth2session.token.get("token_type"),
            id_token=creds.id_token,
            scope=" ".join(creds.scopes or []) or None,
        )

    def credentials(self, tokens: TokenBundle) -> Credentials:
        # google-auth refreshes on demand when a refresh token is present.
        return Credentials(
            token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            id_token=tokens.id_token,
            token_uri=TOKEN_URI,
            client_id=self.settings.GOOGLE_CLIENT_ID,
            client_secret=self.settings.GOOGLE_CLIENT_SECRET,
            scopes=tokens.scope.split() if tokens.scope else None,
            expiry=tokens.expiry,
        )

    def email_from_id_token(self, token: str) -> str | None:
        idinfo = id_token.verify_oauth2_token(
            token,
            google_requests.Request(),
            self.settings.GOOGLE_CLIENT_ID,
        )
        return idinfo.get("email")

    def _oauth2_service(self, tokens: TokenBundle):
        return build("oauth2", "v2", credentials=self.credentials(tokens), cache_discovery=False)

    def email_from_userinfo(self, tokens: TokenBundle) -> str | None:
        data = self._oauth2_service(tokens).userinfo().get().execute()
        return data.get("email")

    def email_from_tokeninfo(self, tokens: TokenBundle) -> str | None:
        data = self._oauth2_service(tokens).tokeninfo(access_token=tokens.access_token).execute()
        return data.get("email")

    def list_upcoming_events(self, tokens: TokenBundle, max_results: int = 20) -> list[dict[str, Any]]:
        svc = build("calendar", "v3", credentials=self.credentials(tokens), cache_discovery=False)
        params = dict(
            calendarId="primary",
            timeMin=datetime.now(timezone.utc).isoformat(),
            maxResults=max_results,
            singleEvents=True,
            orderBy="startTime",
        )
        return svc.events().list(**params).execute().get("items", [])
