from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, RedirectResponse

from calendar_dashboard.errors import CalendarDashboardError
from calendar_dashboard.identity import complete_oauth
from calendar_dashboard.security import Cache, Google, Store

log = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/auth")
def authorize(google: Google):
    # Redirect to Google
    return RedirectResponse(url=google.authorization_url(), status_code=302)


@router.get("/oauth2callback", response_class=PlainTextResponse)
async def oauth2callback(google: Google, store: Store, cache: Cache, code: str | None = None):
    log.info("OAuth2 callback received, code: %s", "present" if code else "missing")
    if not code:
        return PlainTextResponse("No code provided", status_code=400)
    try:
        email = complete_oauth(code, google, store, cache)
    except CalendarDashboardError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    return PlainTextResponse(
        f"Authentication successful for {email}! "
        "Use your email in the X-User-Email header for API requests."
    )
