import uuid
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field


class CyclingActivityType(str, Enum):
    """Workout classification derived from intensity factor."""
    VO2MAX = "vo2max"
    THRESHOLD = "threshold"
    FUN = "fun"
    RECOVERY = "recovery"
    UNKNOWN = "unknown"


class CyclingActivity(BaseModel):
    """Cycling activity as stored in the database."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Internal activity ID")
    strava_id: int = Field(..., description="Strava activity ID, unique per user")
    user_id: str = Field(..., description="User who owns this activity")
    date: str = Field(..., description="Activity start as ISO 8601 string")
    duration_minutes: int
    avg_power: float
    normalized_power: float
    max_power: float
    avg_heart_rate: float
    max_heart_rate: float
    tss: int
    intensity_factor: float
    type: CyclingActivityType
    source: str = "strava"
    ef: float | None = Field(None, description="Efficiency factor (NP / avg HR)")
    peak_5min_power: int | None = None
    peak_20min_power: int | None = None
    hr_completeness: int | None = Field(None, description="Percent of HR samples with a reading")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ActivityEnrichment(BaseModel):
    """Stream-derived fields patched onto an existing activity."""

    peak_5min_power: int | None = None
    peak_20min_power: int | None = None
    hr_completeness: int | None = None

    def has_updates(self) -> bool:
        return bool(self.model_dump(exclude_none=True))


class ActivityStreams(BaseModel):
    """Raw time-series data for a single activity."""

    activity_id: str = Field(..., description="Internal activity ID")
    strava_activity_id: int
    watts: list[float | None] | None = None
    heartrate: list[float | None] | None = None
    time: list[int] | None = None
    cadence: list[float | None] | None = None
    sample_count: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VO2MaxMethod(str, Enum):
    """Power source a VO2 max estimate was derived from."""
    PEAK_5MIN = "peak_5min"
    PEAK_20MIN = "peak_20min"
    FTP_DERIVED = "ftp_derived"


class VO2MaxEstimate(BaseModel):
    """VO2 max estimate derived from power and body weight."""

    user_id: str
    date: str = Field(..., description="Date of the estimate (YYYY-MM-DD)")
    value: float = Field(..., description="VO2 max in mL/kg/min")
    method: VO2MaxMethod
    source_power: float
    source_weight: float
    activity_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EnrichmentResult(BaseModel):
    """Outcome of the best-effort enrichment stage."""

    activity_id: str
    streams_saved: bool = False
    sample_count: int = 0
    updates: ActivityEnrichment = Field(default_factory=ActivityEnrichment)
    vo2max: float | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
