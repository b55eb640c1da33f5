import logging
from datetime import datetime, timezone

from analysis.calculations import (
    PEAK_5MIN_SECONDS,
    PEAK_20MIN_SECONDS,
    estimate_vo2max_from_peak_power,
    hr_completeness,
    peak_power,
)
from clients.strava.client import StravaClient, StravaStream
from database.activity_repository import ActivityRepository
from database.athlete_repository import AthleteRepository
from models.activity import (
    ActivityEnrichment,
    ActivityStreams,
    EnrichmentResult,
    VO2MaxEstimate,
    VO2MaxMethod,
)

logger = logging.getLogger(__name__)

STREAM_KEYS = ['watts', 'heartrate', 'time', 'cadence']


def _stream_data(streams: dict[str, StravaStream], key: str) -> list | None:
    stream = streams.get(key)
    return stream.data if stream else None


class ActivityEnrichmentService:
    """Second-pass enrichment of a stored activity from its Strava streams."""

    def __init__(
        self,
        strava_client: StravaClient,
        activity_repo: ActivityRepository,
        athlete_repo: AthleteRepository
    ):
        self.strava_client = strava_client
        self.activity_repo = activity_repo
        self.athlete_repo = athlete_repo

    async def enrich(
        self,
        user_id: str,
        activity_id: str,
        strava_activity_id: int,
        access_token: str
    ) -> EnrichmentResult:
        """
        Attach stream-derived metrics to an activity.

        Best effort: any failure is logged and reported in the returned
        result, never raised, so the base activity record is unaffected.

        Args:
            user_id: Owner of the activity
            activity_id: Internal activity ID
            strava_activity_id: Strava activity ID to fetch streams for
            access_token: Valid Strava access token

        Returns:
            EnrichmentResult with whatever was computed before any failure
        """
        result = EnrichmentResult(activity_id=activity_id)
        try:
            await self._enrich(result, user_id, activity_id, strava_activity_id, access_token)
        except Exception as e:
            result.error = str(e)
            logger.warning(f"Failed to enrich activity {strava_activity_id} with streams: {e}", exc_info=True)
        return result

    async def _enrich(
        self,
        result: EnrichmentResult,
        user_id: str,
        activity_id: str,
        strava_activity_id: int,
        access_token: str
    ) -> None:
        streams = await self.strava_client.fetch_activity_streams(
            access_token, strava_activity_id, STREAM_KEYS
        )
        watts = _stream_data(streams, 'watts')
        heartrate = _stream_data(streams, 'heartrate')
        time_data = _stream_data(streams, 'time')
        cadence = _stream_data(streams, 'cadence')

        await self._save_streams(result, activity_id, strava_activity_id, watts, heartrate, time_data, cadence)

        updates = ActivityEnrichment()
        if watts and time_data:
            peak5 = peak_power(watts, time_data, PEAK_5MIN_SECONDS)
            if peak5 > 0:
                updates.peak_5min_power = peak5
            peak20 = peak_power(watts, time_data, PEAK_20MIN_SECONDS)
            if peak20 > 0:
                updates.peak_20min_power = peak20

        if heartrate is not None:
            updates.hr_completeness = hr_completeness(heartrate)

        result.updates = updates
        if updates.has_updates():
            await self.activity_repo.update_activity(activity_id, updates)
            logger.info(f"Enriched activity {strava_activity_id} with streams data: {updates.model_dump(exclude_none=True)}")

        if updates.peak_5min_power:
            result.vo2max = await self._estimate_vo2max(user_id, activity_id, updates.peak_5min_power)

    async def _save_streams(
        self,
        result: EnrichmentResult,
        activity_id: str,
        strava_activity_id: int,
        watts: list | None,
        heartrate: list | None,
        time_data: list | None,
        cadence: list | None
    ) -> None:
        if time_data:
            sample_count = len(time_data)
        else:
            sample_count = max(len(series or []) for series in (watts, heartrate, cadence))
        result.sample_count = sample_count

        if sample_count <= 0:
            return

        # A failed stream write should not stop the derived metrics
        try:
            await self.activity_repo.save_streams(ActivityStreams(
                activity_id=activity_id,
                strava_activity_id=strava_activity_id,
                watts=watts,
                heartrate=heartrate,
                time=time_data,
                cadence=cadence,
                sample_count=sample_count
            ))
            result.streams_saved = True
        except Exception as e:
            logger.warning(f"Failed to save stream data for activity {strava_activity_id}: {e}")

    async def _estimate_vo2max(self, user_id: str, activity_id: str, peak_5min_power: int) -> float | None:
        profile = await self.athlete_repo.get_cycling_profile(user_id)
        if not profile or profile.weight_kg <= 0:
            return None

        vo2max = estimate_vo2max_from_peak_power(peak_5min_power, profile.weight_kg, VO2MaxMethod.PEAK_5MIN)
        if vo2max is None:
            return None

        await self.activity_repo.save_vo2max_estimate(VO2MaxEstimate(
            user_id=user_id,
            date=datetime.now(timezone.utc).date().isoformat(),
            value=vo2max,
            method=VO2MaxMethod.PEAK_5MIN,
            source_power=peak_5min_power,
            source_weight=profile.weight_kg,
            activity_id=activity_id
        ))
        logger.info(f"Auto-estimated VO2 max {vo2max} mL/kg/min from peak 5-min power {peak_5min_power}W")
        return vo2max
