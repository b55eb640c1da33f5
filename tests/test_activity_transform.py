from clients.strava.client import StravaActivity
from models.activity import CyclingActivityType
from services.activity_transform import is_cycling_activity, process_strava_activity

from conftest import make_strava_activity


def test_only_rides_are_cycling_activities():
    assert is_cycling_activity(StravaActivity(make_strava_activity(1, "Ride")))
    assert is_cycling_activity(StravaActivity(make_strava_activity(2, "VirtualRide")))
    assert not is_cycling_activity(StravaActivity(make_strava_activity(3, "Run")))
    assert not is_cycling_activity(StravaActivity(make_strava_activity(4, "Swim")))


def test_process_strava_activity_maps_summary_fields():
    activity = process_strava_activity(StravaActivity(make_strava_activity(987)), ftp=200, user_id="user-1")

    assert activity.strava_id == 987
    assert activity.user_id == "user-1"
    assert activity.date == "2024-01-15T08:00:00Z"
    assert activity.duration_minutes == 60
    assert activity.avg_power == 180.0
    assert activity.normalized_power == 200.0
    assert activity.max_power == 450.0
    assert activity.avg_heart_rate == 140.0
    assert activity.max_heart_rate == 170.0
    assert activity.intensity_factor == 1.0
    assert activity.tss == 100
    assert activity.type == CyclingActivityType.THRESHOLD
    assert activity.ef == 1.43
    assert activity.source == "strava"
    assert activity.peak_5min_power is None


def test_normalized_power_falls_back_to_average_watts():
    data = make_strava_activity(1, weighted_average_watts=None, average_watts=150.0)
    activity = process_strava_activity(StravaActivity(data), ftp=200, user_id="user-1")

    assert activity.normalized_power == 150.0
    assert activity.intensity_factor == 0.75
    assert activity.type == CyclingActivityType.FUN


def test_ride_without_power_or_heart_rate():
    data = make_strava_activity(
        1,
        weighted_average_watts=None,
        average_watts=None,
        max_watts=None,
        average_heartrate=None,
        max_heartrate=None,
    )
    activity = process_strava_activity(StravaActivity(data), ftp=200, user_id="user-1")

    assert activity.normalized_power == 0.0
    assert activity.tss == 0
    assert activity.intensity_factor == 0.0
    assert activity.type == CyclingActivityType.UNKNOWN
    assert activity.ef is None


def test_zero_weighted_watts_is_not_replaced_by_average():
    data = make_strava_activity(1, weighted_average_watts=0, average_watts=150.0)
    activity = process_strava_activity(StravaActivity(data), ftp=200, user_id="user-1")

    assert activity.normalized_power == 0.0
    assert activity.avg_power == 150.0
    assert activity.intensity_factor == 0.0
    assert activity.type == CyclingActivityType.UNKNOWN
