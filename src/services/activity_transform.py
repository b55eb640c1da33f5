from analysis.calculations import (
    classify_workout_type,
    efficiency_factor,
    intensity_factor,
    training_stress_score,
)
from clients.strava.client import StravaActivity
from models.activity import CyclingActivity

CYCLING_ACTIVITY_TYPES = frozenset({"Ride", "VirtualRide"})


def is_cycling_activity(activity: StravaActivity) -> bool:
    """Only rides (outdoor and virtual) are ingested."""
    return activity.type in CYCLING_ACTIVITY_TYPES


def process_strava_activity(
    activity: StravaActivity,
    ftp: float,
    user_id: str
) -> CyclingActivity:
    """
    Convert a Strava activity into a CyclingActivity ready for storage.

    Normalized power is taken from Strava's weighted average watts, falling
    back to average watts only when the weighted value is missing. A reported
    weighted value of 0 is kept as is.
    """
    if activity.weighted_average_watts is not None:
        normalized_power = float(activity.weighted_average_watts)
    elif activity.average_watts is not None:
        normalized_power = float(activity.average_watts)
    else:
        normalized_power = 0.0
    avg_power = float(activity.average_watts or 0)
    duration_sec = activity.moving_time or 0
    avg_heart_rate = float(activity.average_heartrate or 0)

    if_value = intensity_factor(normalized_power, ftp)

    return CyclingActivity(
        strava_id=activity.id,
        user_id=user_id,
        date=activity.start_date,
        duration_minutes=round(duration_sec / 60),
        avg_power=avg_power,
        normalized_power=normalized_power,
        max_power=float(activity.max_watts or 0),
        avg_heart_rate=avg_heart_rate,
        max_heart_rate=float(activity.max_heartrate or 0),
        tss=training_stress_score(duration_sec, normalized_power, ftp),
        intensity_factor=if_value,
        type=classify_workout_type(if_value),
        source="strava",
        ef=efficiency_factor(normalized_power, avg_heart_rate),
    )
