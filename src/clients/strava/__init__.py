"""Strava client and utilities."""

from clients.strava.client import (
    StravaApiError,
    StravaActivity,
    StravaClient,
    StravaStream,
    TokenRefreshResult
)

__all__ = [
    "StravaApiError",
    "StravaActivity",
    "StravaClient",
    "StravaStream",
    "TokenRefreshResult"
]
