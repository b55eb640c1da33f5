from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class AspectType(str, Enum):
    """Lifecycle verb of a Strava webhook notification."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ObjectType(str, Enum):
    """Kind of Strava object a notification refers to."""
    ACTIVITY = "activity"
    ATHLETE = "athlete"


class WebhookEvent(BaseModel):
    """Event pushed by Strava to the subscription callback URL."""

    aspect_type: AspectType
    object_type: ObjectType
    object_id: int = Field(..., gt=0, description="Activity or athlete ID")
    owner_id: int = Field(..., gt=0, description="Strava athlete ID of the owner")
    event_time: int = Field(..., gt=0, description="Unix timestamp of the event")
    subscription_id: int | None = Field(None, gt=0)
    updates: dict[str, Any] | None = None


class StravaTokenSyncRequest(BaseModel):
    """Credential set pushed by the app's own client after the OAuth flow."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., min_length=1, alias="accessToken")
    refresh_token: str = Field(..., min_length=1, alias="refreshToken")
    expires_at: int = Field(..., gt=0, alias="expiresAt")
    athlete_id: int = Field(..., gt=0, alias="athleteId")
