"""Error taxonomy for the dashboard API.

Every error carries the HTTP status it maps to; ``middleware.py`` renders
them as ``{"error": ..., "details": ...}`` JSON and the OAuth routes render
them as plain text.
"""

from __future__ import annotations


class CalendarDashboardError(Exception):
    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class MissingIdentifierError(CalendarDashboardError):
    status_code = 400


class UnauthenticatedError(CalendarDashboardError):
    status_code = 401


class EventNotFoundError(CalendarDashboardError):
    status_code = 404


class TokenExchangeError(CalendarDashboardError):
    status_code = 500


class IdentityResolutionError(CalendarDashboardError):
    status_code = 400


class ProviderFetchError(CalendarDashboardError):
    status_code = 500


class UserStoreError(CalendarDashboardError):
    status_code = 500
