import logging

from fastapi import APIRouter

from calendar_dashboard.cache import EventCache
from calendar_dashboard.errors import EventNotFoundError
from calendar_dashboard.events import fetch_processed_events, summarize
from calendar_dashboard.google_api import GoogleClient
from calendar_dashboard.schemas import EventOut, EventSummary, UserRecord
from calendar_dashboard.security import Cache, CurrentUser, Google

log = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def _cached_events(
    user: UserRecord,
    cache: EventCache,
    google: GoogleClient,
    failure_message: str = "Failed to fetch events",
) -> list[EventOut]:
    events = cache.get(user.email, "events")
    if events is not None:
        log.info("Returning cached events for user: %s", user.email)
        return events
    events = fetch_processed_events(google, user.email, user.credentials, failure_message)
    cache.put(user.email, "events", events)
    return events


@router.get("", response_model=list[EventOut])
async def list_events(user: CurrentUser, cache: Cache, google: Google):
    return _cached_events(user, cache, google)


# Declared before /{event_id} so "summary" is not taken for an id.
@router.get("/summary", response_model=EventSummary)
async def events_summary(user: CurrentUser, cache: Cache, google: Google):
    summary = cache.get(user.email, "summary")
    if summary is not None:
        log.info("Returning cached summary for user: %s", user.email)
        return summary
    summary = summarize(
        fetch_processed_events(google, user.email, user.credentials, "Failed to fetch summary")
    )
    cache.put(user.email, "summary", summary)
    return summary


@router.get("/{event_id}", response_model=EventOut)
async def get_event(event_id: str, user: CurrentUser, cache: Cache, google: Google):
    events = _cached_events(user, cache, google, "Failed to fetch event")
    event = next((e for e in events if e.id == event_id), None)
    if event is None:
        raise EventNotFoundError("Event not found")
    return event
