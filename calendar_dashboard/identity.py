"""OAuth callback handling: code exchange and owner-email resolution.

Scopes are not always granted the same way across deployments, so the
owner's email is looked up three ways, in order, stopping at the first hit:

1. the verified ``id_token`` payload,
2. the OAuth2 ``userinfo`` endpoint,
3. the OAuth2 ``tokeninfo`` endpoint.

A failing lookup is logged and the next one is tried. Only when all three
come back empty is the callback rejected, and then nothing is stored.
"""

from __future__ import annotations

import logging
from typing import Callable

from calendar_dashboard.cache import EventCache
from calendar_dashboard.errors import IdentityResolutionError, TokenExchangeError
from calendar_dashboard.google_api import GoogleClient
from calendar_dashboard.schemas import TokenBundle
from calendar_dashboard.store import UserStore

log = logging.getLogger(__name__)


def _attempt(name: str, lookup: Callable[[], str | None]) -> str | None:
    try:
        email = lookup()
    except Exception as e:
        log.info("%s lookup failed: %s", name, e)
        return None
    log.info("Email from %s: %s", name, email)
    return email or None


def resolve_email(client: GoogleClient, tokens: TokenBundle) -> str | None:
    email = None
    if tokens.id_token:
        email = _attempt("id_token", lambda: client.email_from_id_token(tokens.id_token))
    if not email and tokens.access_token:
        email = _attempt("userinfo", lambda: client.email_from_userinfo(tokens))
    if not email and tokens.access_token:
        email = _attempt("tokeninfo", lambda: client.email_from_tokeninfo(tokens))
    return email


def complete_oauth(code: str, client: GoogleClient, store: UserStore, cache: EventCache) -> str:
    """Exchange ``code``, find the owner, persist the tokens; returns the email."""
    try:
        tokens = client.exchange_code(code)
    except Exception as e:
        log.error("Token exchange failed", exc_info=True)
        raise TokenExchangeError(f"Error retrieving access token: {e}", details=str(e)) from e

    email = resolve_email(client, tokens)
    if not email:
        log.warning("All methods failed to get email")
        raise IdentityResolutionError(
            "Could not get user email from any method. Please check OAuth2 scopes."
        )

    store.save(email, tokens)
    cache.invalidate(email)
    return email
