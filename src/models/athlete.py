from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field


class StravaTokens(BaseModel):
    """Strava OAuth tokens model - stored separately from athlete data."""

    user_id: str = Field(..., description="Internal user ID owning the connection")
    athlete_id: int = Field(..., description="Strava athlete ID the tokens were issued for")
    access_token: str
    refresh_token: str
    expires_at: int  # Unix timestamp
    token_type: str = "Bearer"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AthleteUserMapping(BaseModel):
    """Maps a Strava athlete ID to the internal user that connected it."""

    athlete_id: int = Field(..., description="Strava athlete ID")
    user_id: str = Field(..., description="Internal user ID")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FTPSource(str, Enum):
    """Where an FTP value came from."""
    MANUAL = "manual"
    TEST = "test"
    ESTIMATED = "estimated"


class FTPEntry(BaseModel):
    """Single entry in a user's FTP history."""

    user_id: str
    value: int = Field(..., gt=0, description="Functional Threshold Power in watts")
    date: str = Field(..., description="Date the FTP became effective (YYYY-MM-DD)")
    source: FTPSource = FTPSource.MANUAL


class CyclingProfile(BaseModel):
    """Body metrics used for derived fitness estimates."""

    user_id: str
    weight_kg: float = Field(..., description="Body weight in kilograms")
    max_hr: int | None = None
    resting_hr: int | None = None
