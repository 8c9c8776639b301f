from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class TokenBundle(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expiry: datetime | None = None  # naive UTC, as google-auth keeps it
    token_type: str | None = None
    id_token: str | None = None
    scope: str | None = None  # space-separated

class UserRecord(BaseModel):
    email: str
    credentials: TokenBundle

class StoreData(BaseModel):
    users: list[UserRecord] = []

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class EventOut(_CamelModel):
    id: str
    title: str
    start: str  # RFC3339 dateTime or all-day date
    end: str
    duration_minutes: int
    location: str = ""
    attendees: list[str] = Field(default_factory=list)

class EventSummary(_CamelModel):
    total_events: int
    total_hours: float
    first_event_start: str | None = None
    last_event_end: str | None = None

class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
