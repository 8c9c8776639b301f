from typing import Annotated

from fastapi import Depends, Header, Request

from calendar_dashboard.cache import EventCache
from calendar_dashboard.errors import MissingIdentifierError, UnauthenticatedError
from calendar_dashboard.google_api import GoogleClient
from calendar_dashboard.schemas import UserRecord
from calendar_dashboard.store import UserStore


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_cache(request: Request) -> EventCache:
    return request.app.state.cache


def get_google(request: Request) -> GoogleClient:
    return request.app.state.google


# Use these type aliases in routes
Store = Annotated[UserStore, Depends(get_store)]
Cache = Annotated[EventCache, Depends(get_cache)]
Google = Annotated[GoogleClient, Depends(get_google)]


def get_current_user(
    store: Store,
    x_user_email: Annotated[str | None, Header()] = None,
) -> UserRecord:
    if not x_user_email:
        raise MissingIdentifierError("Missing X-User-Email header")
    user = store.get(x_user_email)
    if not user or not user.credentials:
        raise UnauthenticatedError("Not authenticated. Go to /auth to login.")
    return user


CurrentUser = Annotated[UserRecord, Depends(get_current_user)]
