import logging
from typing import Any

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from models.activity import ActivityEnrichment, ActivityStreams, CyclingActivity, VO2MaxEstimate

logger = logging.getLogger(__name__)


class DuplicateActivityError(Exception):
    """Raised when an activity already exists for (user_id, strava_id)."""

    def __init__(self, user_id: str, strava_id: int):
        super().__init__(f"Activity {strava_id} already stored for user {user_id}")
        self.user_id = user_id
        self.strava_id = strava_id


def _to_activity(doc: dict[str, Any]) -> CyclingActivity:
    doc.pop("_id", None)
    doc["id"] = doc.pop("activity_id")
    return CyclingActivity(**doc)


class ActivityRepository:
    """Repository for cycling activities, their streams and derived estimates."""

    def __init__(self, db: AsyncDatabase):
        self.db = db
        self.activities_collection = db["cycling_activities"]
        self.streams_collection = db["activity_streams"]
        self.vo2max_collection = db["vo2max_estimates"]

    async def get_activity_by_strava_id(
        self,
        user_id: str,
        strava_id: int
    ) -> CyclingActivity | None:
        """
        Get an activity by its dedup key.

        Args:
            user_id: Internal user ID
            strava_id: Strava activity ID

        Returns:
            CyclingActivity or None if not ingested
        """
        doc = await self.activities_collection.find_one({
            "user_id": user_id,
            "strava_id": strava_id
        })
        if doc:
            return _to_activity(doc)
        return None

    async def create_activity(self, activity: CyclingActivity) -> CyclingActivity:
        """
        Insert a new activity.

        Args:
            activity: Activity to store, carrying its generated internal ID

        Returns:
            The stored activity

        Raises:
            DuplicateActivityError: If the user already has this Strava activity
        """
        doc = activity.model_dump(exclude={"id"}, exclude_none=True, mode="json")
        doc["activity_id"] = activity.id

        try:
            await self.activities_collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateActivityError(activity.user_id, activity.strava_id) from e

        logger.info(
            f"Created activity {activity.id} (strava {activity.strava_id}) for user {activity.user_id}: "
            f"type={activity.type.value}, tss={activity.tss}, if={activity.intensity_factor}, "
            f"np={activity.normalized_power}"
        )
        return activity

    async def update_activity(self, activity_id: str, updates: ActivityEnrichment) -> bool:
        """Patch stream-derived fields onto an activity."""
        fields = updates.model_dump(exclude_none=True)
        if not fields:
            return False

        result = await self.activities_collection.update_one(
            {"activity_id": activity_id},
            {"$set": fields}
        )
        return result.modified_count > 0

    async def delete_activity(self, activity_id: str) -> bool:
        """
        Delete an activity together with its streams.

        Args:
            activity_id: Internal activity ID

        Returns:
            True if the activity existed and was deleted
        """
        streams_result = await self.streams_collection.delete_one({"activity_id": activity_id})
        result = await self.activities_collection.delete_one({"activity_id": activity_id})

        if result.deleted_count > 0:
            logger.info(f"Deleted activity {activity_id} (had streams: {streams_result.deleted_count > 0})")
            return True
        return False

    async def save_streams(self, streams: ActivityStreams) -> None:
        """Store raw stream data for an activity. Streams are written once and never updated."""
        await self.streams_collection.insert_one(streams.model_dump(exclude_none=True))
        logger.info(f"Saved streams for activity {streams.activity_id} ({streams.sample_count} samples)")

    async def save_vo2max_estimate(self, estimate: VO2MaxEstimate) -> VO2MaxEstimate:
        """Store a VO2 max estimate."""
        await self.vo2max_collection.insert_one(estimate.model_dump(mode="json"))
        logger.info(
            f"Saved VO2 max estimate for user {estimate.user_id}: {estimate.value} "
            f"({estimate.method.value}, {estimate.source_power}W @ {estimate.source_weight}kg)"
        )
        return estimate
