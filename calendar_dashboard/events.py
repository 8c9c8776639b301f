from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable

from dateutil import parser as dtparse

from calendar_dashboard.errors import ProviderFetchError
from calendar_dashboard.google_api import GoogleClient
from calendar_dashboard.schemas import EventOut, EventSummary, TokenBundle

log = logging.getLogger(__name__)

MAX_RESULTS = 20
NO_TITLE = "No Title"


def _when(it: dict[str, Any], key: str) -> str | None:
    slot = it.get(key) or {}
    return slot.get("dateTime") or slot.get("date")


def _as_utc(value: str) -> datetime:
    # All-day dates and offset-less stamps are read as UTC.
    dt = dtparse.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def duration_minutes(start: str, end: str) -> int:
    """Whole minutes between two provider timestamps, rounding halves up.

    Zero and negative results are returned as-is.
    """
    delta = (_as_utc(end) - _as_utc(start)).total_seconds() / 60
    return math.floor(delta + 0.5)


def normalize_event(it: dict[str, Any]) -> EventOut | None:
    """Map one raw ``events.list`` item to an ``EventOut``; ``None`` drops it."""
    if it.get("status") == "cancelled":
        return None
    start = _when(it, "start")
    end = _when(it, "end")
    if not it.get("id") or not start or not end:
        return None
    try:
        minutes = duration_minutes(start, end)
    except (ValueError, OverflowError):
        log.warning("Dropping event %s with unparsable times %r..%r", it["id"], start, end)
        return None
    return EventOut(
        id=it["id"],
        title=it.get("summary") or NO_TITLE,
        start=start,
        end=end,
        duration_minutes=minutes,
        location=it.get("location") or "",
        attendees=[a["email"] for a in it.get("attendees") or [] if a.get("email")],
    )


def normalize_events(items: Iterable[dict[str, Any]]) -> list[EventOut]:
    events = []
    for it in items:
        ev = normalize_event(it)
        if ev is not None:
            events.append(ev)
    return events


def summarize(events: list[EventOut]) -> EventSummary:
    if not events:
        return EventSummary(total_events=0, total_hours=0, first_event_start=None, last_event_end=None)
    # First/last follow Google's startTime ordering, not a min/max.
    return EventSummary(
        total_events=len(events),
        total_hours=sum(e.duration_minutes for e in events) / 60,
        first_event_start=events[0].start,
        last_event_end=events[-1].end,
    )


def fetch_processed_events(
    client: GoogleClient,
    email: str,
    tokens: TokenBundle,
    failure_message: str = "Failed to fetch events",
) -> list[EventOut]:
    log.info("Fetching events for user: %s", email)
    try:
        items = client.list_upcoming_events(tokens, max_results=MAX_RESULTS)
    except Exception as e:
        log.error("Google Calendar fetch failed for %s", email, exc_info=True)
        raise ProviderFetchError(failure_message, details=str(e)) from e
    events = normalize_events(items)
    log.info("Google returned %d items, %d kept for %s", len(items), len(events), email)
    return events
