"""Shared fixtures: in-memory repositories and a fake Strava client."""

import asyncio
import time

import pytest

from clients.strava.client import (
    StravaActivity,
    StravaApiError,
    StravaClient,
    StravaStream,
    TokenRefreshResult,
)
from config import settings
from database.activity_repository import ActivityRepository, DuplicateActivityError
from database.athlete_repository import AthleteRepository
from models.activity import ActivityEnrichment, ActivityStreams, CyclingActivity, VO2MaxEstimate
from models.athlete import AthleteUserMapping, CyclingProfile, FTPEntry, StravaTokens
from services.activity_ingestion import ActivityIngestionService

ATHLETE_ID = 12345
USER_ID = "default-user"


def make_strava_activity(activity_id: int, activity_type: str = "Ride", **overrides) -> dict:
    data = {
        "id": activity_id,
        "name": "Morning Ride",
        "type": activity_type,
        "sport_type": activity_type,
        "start_date": "2024-01-15T08:00:00Z",
        "moving_time": 3600,
        "elapsed_time": 3720,
        "distance": 30000.0,
        "average_watts": 180.0,
        "weighted_average_watts": 200.0,
        "max_watts": 450.0,
        "average_heartrate": 140.0,
        "max_heartrate": 170.0,
        "device_watts": True,
    }
    data.update(overrides)
    return data


def make_streams(seconds: int = 600) -> dict[str, list]:
    """Ride with 5 minutes at 200W followed by 5 minutes at 250W."""
    return {
        "time": list(range(seconds)),
        "watts": [200.0 if i < seconds // 2 else 250.0 for i in range(seconds)],
        "heartrate": [140.0] * seconds,
        "cadence": [90.0] * seconds,
    }


class FakeAthleteRepository(AthleteRepository):
    def __init__(self) -> None:
        self.tokens: dict[str, StravaTokens] = {}
        self.mappings: dict[int, str] = {}
        self.ftp: dict[str, FTPEntry] = {}
        self.profiles: dict[str, CyclingProfile] = {}
        self.calls: list[str] = []

    async def get_tokens(self, user_id: str) -> StravaTokens | None:
        self.calls.append("get_tokens")
        return self.tokens.get(user_id)

    async def save_tokens(self, tokens: StravaTokens) -> StravaTokens:
        self.calls.append("save_tokens")
        self.tokens[tokens.user_id] = tokens
        return tokens

    async def get_user_id_by_athlete_id(self, athlete_id: int) -> str | None:
        self.calls.append("get_user_id_by_athlete_id")
        return self.mappings.get(athlete_id)

    async def set_athlete_mapping(self, athlete_id: int, user_id: str) -> AthleteUserMapping:
        self.calls.append("set_athlete_mapping")
        self.mappings[athlete_id] = user_id
        return AthleteUserMapping(athlete_id=athlete_id, user_id=user_id)

    async def get_current_ftp(self, user_id: str) -> FTPEntry | None:
        self.calls.append("get_current_ftp")
        return self.ftp.get(user_id)

    async def get_cycling_profile(self, user_id: str) -> CyclingProfile | None:
        self.calls.append("get_cycling_profile")
        return self.profiles.get(user_id)


class FakeActivityRepository(ActivityRepository):
    def __init__(self) -> None:
        self.activities: dict[str, CyclingActivity] = {}
        self.streams: dict[str, ActivityStreams] = {}
        self.vo2max_estimates: list[VO2MaxEstimate] = []
        self.calls: list[tuple] = []
        self.fail_save_streams = False

    async def get_activity_by_strava_id(self, user_id: str, strava_id: int) -> CyclingActivity | None:
        self.calls.append(("get_activity_by_strava_id", user_id, strava_id))
        for activity in self.activities.values():
            if activity.user_id == user_id and activity.strava_id == strava_id:
                return activity
        return None

    async def create_activity(self, activity: CyclingActivity) -> CyclingActivity:
        self.calls.append(("create_activity", activity.user_id, activity.strava_id))
        for existing in self.activities.values():
            if existing.user_id == activity.user_id and existing.strava_id == activity.strava_id:
                raise DuplicateActivityError(activity.user_id, activity.strava_id)
        self.activities[activity.id] = activity
        return activity

    async def update_activity(self, activity_id: str, updates: ActivityEnrichment) -> bool:
        self.calls.append(("update_activity", activity_id))
        activity = self.activities.get(activity_id)
        if activity is None:
            return False
        self.activities[activity_id] = activity.model_copy(update=updates.model_dump(exclude_none=True))
        return True

    async def delete_activity(self, activity_id: str) -> bool:
        self.calls.append(("delete_activity", activity_id))
        self.streams.pop(activity_id, None)
        return self.activities.pop(activity_id, None) is not None

    async def save_streams(self, streams: ActivityStreams) -> None:
        self.calls.append(("save_streams", streams.activity_id))
        if self.fail_save_streams:
            raise RuntimeError("stream write failed")
        self.streams[streams.activity_id] = streams

    async def save_vo2max_estimate(self, estimate: VO2MaxEstimate) -> VO2MaxEstimate:
        self.calls.append(("save_vo2max_estimate", estimate.user_id))
        self.vo2max_estimates.append(estimate)
        return estimate

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeStravaClient(StravaClient):
    def __init__(self) -> None:
        self.activities: dict[int, dict] = {}
        self.streams: dict[int, dict[str, list]] = {}
        self.stream_error: Exception | None = None
        self.fetch_gate: asyncio.Event | None = None
        self.fetch_calls: list[tuple[str, int]] = []
        self.stream_calls: list[tuple[str, int]] = []
        self.refresh_calls: list[tuple[str, str, str]] = []
        self.events: list[str] = []

    async def fetch_activity(self, access_token: str, activity_id: int) -> StravaActivity:
        self.fetch_calls.append((access_token, activity_id))
        self.events.append("fetch_activity")
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if activity_id not in self.activities:
            raise StravaApiError("Strava API error: 404", 404)
        return StravaActivity(self.activities[activity_id])

    async def fetch_activity_streams(
        self,
        access_token: str,
        activity_id: int,
        keys: list[str] | None = None
    ) -> dict[str, StravaStream]:
        self.stream_calls.append((access_token, activity_id))
        self.events.append("fetch_activity_streams")
        if self.stream_error is not None:
            raise self.stream_error
        data = self.streams.get(activity_id, {})
        return {key: StravaStream(key, values) for key, values in data.items()}

    async def refresh_tokens(self, client_id: str, client_secret: str, refresh_token: str) -> TokenRefreshResult:
        self.refresh_calls.append((client_id, client_secret, refresh_token))
        self.events.append("refresh_tokens")
        return TokenRefreshResult({
            "access_token": "refreshed-access-token",
            "refresh_token": "refreshed-refresh-token",
            "expires_at": int(time.time()) + 6 * 3600,
        })


@pytest.fixture(autouse=True)
def strava_settings(monkeypatch):
    monkeypatch.setattr(settings, "strava_client_id", "test-client-id")
    monkeypatch.setattr(settings, "strava_client_secret", "test-client-secret")
    monkeypatch.setattr(settings, "strava_webhook_verify_token", "test-verify-token")
    monkeypatch.setattr(settings, "token_refresh_buffer_seconds", 300)
    monkeypatch.setattr(settings, "default_ftp", 200)
    monkeypatch.setattr(settings, "dev_mode", False)
    return settings


@pytest.fixture
def athlete_repo() -> FakeAthleteRepository:
    return FakeAthleteRepository()


@pytest.fixture
def activity_repo() -> FakeActivityRepository:
    return FakeActivityRepository()


@pytest.fixture
def strava_client() -> FakeStravaClient:
    return FakeStravaClient()


@pytest.fixture
def connected_athlete(athlete_repo: FakeAthleteRepository) -> StravaTokens:
    """Athlete 12345 mapped to default-user with tokens valid for six hours."""
    athlete_repo.mappings[ATHLETE_ID] = USER_ID
    tokens = StravaTokens(
        user_id=USER_ID,
        athlete_id=ATHLETE_ID,
        access_token="valid-access-token",
        refresh_token="valid-refresh-token",
        expires_at=int(time.time()) + 6 * 3600,
    )
    athlete_repo.tokens[USER_ID] = tokens
    athlete_repo.calls.clear()
    return tokens


@pytest.fixture
def ingestion_service(
    athlete_repo: FakeAthleteRepository,
    activity_repo: FakeActivityRepository,
    strava_client: FakeStravaClient,
) -> ActivityIngestionService:
    return ActivityIngestionService(athlete_repo, activity_repo, strava_client)
