"""
Async Strava API client used by the webhook pipeline.

Covers the three calls the pipeline needs: a single activity, its streams,
and the OAuth refresh grant. The client holds no per-athlete state; the
access token is passed on every call.
"""
import logging
from typing import Any

import httpx

from config import settings

logger = logging.getLogger(__name__)


class StravaApiError(Exception):
    """Raised when the Strava API answers with a non-success status."""

    def __init__(self, message: str, status_code: int, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class StravaActivity:
    """Simple Strava activity representation from API response."""

    def __init__(self, data: dict):
        self.id = data['id']
        self.type = data['type']
        self.start_date = data['start_date']
        self.moving_time = data.get('moving_time', 0)
        self.average_heartrate = data.get('average_heartrate')
        self.max_heartrate = data.get('max_heartrate')
        self.average_watts = data.get('average_watts')
        self.weighted_average_watts = data.get('weighted_average_watts')
        self.max_watts = data.get('max_watts')


class StravaStream:
    """Simple Strava stream representation."""

    def __init__(self, stream_type: str, data: list):
        self.type = stream_type
        self.data = data


class TokenRefreshResult:
    """Token set returned by the refresh grant."""

    def __init__(self, data: dict):
        self.access_token: str = data['access_token']
        self.refresh_token: str = data['refresh_token']
        self.expires_at: int = int(data['expires_at'])
        athlete = data.get('athlete') or {}
        self.athlete_id: int | None = athlete.get('id')


class StravaClient:
    """Stateless request/response wrapper around the Strava REST API."""

    DEFAULT_STREAM_KEYS = ['watts', 'heartrate', 'time', 'cadence']

    def __init__(
        self,
        base_url: str | None = None,
        oauth_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.base_url = (base_url or settings.strava_api_base_url).rstrip('/')
        self.oauth_url = oauth_url or settings.strava_oauth_url
        self.timeout = timeout if timeout is not None else settings.strava_request_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _auth_headers(access_token: str) -> dict[str, str]:
        return {'Authorization': f'Bearer {access_token}'}

    @staticmethod
    def _raise_for_status(response: httpx.Response, message: str) -> None:
        if response.is_success:
            return
        try:
            detail = response.json()
        except ValueError:
            detail = response.text
        raise StravaApiError(f"{message}: {response.status_code}", response.status_code, detail)

    async def fetch_activity(self, access_token: str, activity_id: int) -> StravaActivity:
        """
        Fetch a single activity.

        Args:
            access_token: Valid Strava access token
            activity_id: Strava activity ID

        Returns:
            StravaActivity for the detailed activity

        Raises:
            StravaApiError: If Strava returns a non-success status
        """
        url = f"{self.base_url}/activities/{activity_id}"
        async with self._client() as client:
            response = await client.get(url, headers=self._auth_headers(access_token))

        self._raise_for_status(response, "Strava API error")
        return StravaActivity(response.json())

    async def fetch_activity_streams(
        self,
        access_token: str,
        activity_id: int,
        keys: list[str] | None = None
    ) -> dict[str, StravaStream]:
        """
        Fetch time-series streams for an activity.

        Args:
            access_token: Valid Strava access token
            activity_id: Strava activity ID
            keys: Stream types to request (defaults to power, HR, time, cadence)

        Returns:
            Dictionary of stream type to StravaStream objects

        Raises:
            StravaApiError: If Strava returns a non-success status
        """
        stream_keys = keys or self.DEFAULT_STREAM_KEYS
        url = f"{self.base_url}/activities/{activity_id}/streams"
        params = {
            'keys': ','.join(stream_keys),
            'key_by_type': 'true'
        }
        async with self._client() as client:
            response = await client.get(url, headers=self._auth_headers(access_token), params=params)

        self._raise_for_status(response, "Strava streams error")
        streams_data = response.json()

        streams = {}
        for stream_type, stream_info in streams_data.items():
            if isinstance(stream_info, dict) and 'data' in stream_info:
                streams[stream_type] = StravaStream(stream_type, stream_info['data'])
        return streams

    async def refresh_tokens(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str
    ) -> TokenRefreshResult:
        """Exchange a refresh token for a new token set."""
        data = {
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token"
        }
        async with self._client() as client:
            response = await client.post(self.oauth_url, data=data)

        self._raise_for_status(response, "Token refresh failed")
        return TokenRefreshResult(response.json())
