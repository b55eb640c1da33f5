import asyncio
import logging
import weakref

from auth.oauth import MissingClientCredentialsError, StravaOAuthService
from clients.strava.client import StravaClient
from config import settings
from database.activity_repository import ActivityRepository, DuplicateActivityError
from database.athlete_repository import AthleteRepository
from models.activity import CyclingActivity
from models.webhook import AspectType
from services.activity_transform import is_cycling_activity, process_strava_activity
from services.enrichment import ActivityEnrichmentService
from services.identity import IdentityResolver

logger = logging.getLogger(__name__)

# Events for the same Strava activity are processed one at a time in this process
_activity_locks: weakref.WeakValueDictionary[tuple[int, int], asyncio.Lock] = weakref.WeakValueDictionary()


def _activity_lock(owner_id: int, object_id: int) -> asyncio.Lock:
    key = (owner_id, object_id)
    lock = _activity_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _activity_locks[key] = lock
    return lock


class ActivityIngestionService:
    """Turns Strava activity webhook events into stored cycling activities."""

    def __init__(
        self,
        athlete_repo: AthleteRepository,
        activity_repo: ActivityRepository,
        strava_client: StravaClient
    ):
        self.athlete_repo = athlete_repo
        self.activity_repo = activity_repo
        self.strava_client = strava_client
        self.identity_resolver = IdentityResolver(athlete_repo)
        self.oauth_service = StravaOAuthService(athlete_repo, strava_client)
        self.enrichment_service = ActivityEnrichmentService(strava_client, activity_repo, athlete_repo)

    async def process_event(self, owner_id: int, object_id: int, aspect_type: AspectType) -> None:
        """
        Process one activity event.

        Unknown athletes are ignored. Errors are logged with the event context
        and re-raised to the background task wrapper.
        """
        logger.info(f"Processing {aspect_type.value} for activity {object_id} (athlete {owner_id})")

        try:
            user_id = await self.identity_resolver.resolve_user_id(owner_id)
            if not user_id:
                logger.info(f"No user found for athlete ID {owner_id}, ignoring event")
                return

            async with _activity_lock(owner_id, object_id):
                if aspect_type == AspectType.CREATE:
                    await self.handle_create(user_id, object_id)
                elif aspect_type == AspectType.UPDATE:
                    await self.handle_update(user_id, object_id)
                elif aspect_type == AspectType.DELETE:
                    await self.handle_delete(user_id, object_id)
        except Exception as e:
            logger.error(
                f"Error processing {aspect_type.value} for activity {object_id} "
                f"(athlete {owner_id}): {str(e)}",
                exc_info=True
            )
            raise

    async def handle_create(self, user_id: str, activity_id: int) -> CyclingActivity | None:
        """
        Fetch, transform, store and enrich a new Strava activity.

        Args:
            user_id: Internal user ID
            activity_id: Strava activity ID

        Returns:
            The stored activity, or None if nothing was stored
        """
        existing = await self.activity_repo.get_activity_by_strava_id(user_id, activity_id)
        if existing:
            logger.info(f"Activity {activity_id} already exists, skipping")
            return None

        tokens = await self.athlete_repo.get_tokens(user_id)
        if not tokens:
            logger.warning(f"No Strava tokens for user {user_id}")
            return None

        try:
            tokens = await self.oauth_service.ensure_fresh_tokens(tokens)
        except MissingClientCredentialsError as e:
            logger.error(f"Missing Strava client credentials, cannot refresh tokens for user {user_id}: {e}")
            return None
        access_token = tokens.access_token

        strava_activity = await self.strava_client.fetch_activity(access_token, activity_id)

        if not is_cycling_activity(strava_activity):
            logger.info(f"Skipping non-cycling activity type: {strava_activity.type}")
            return None

        ftp = await self.athlete_repo.get_current_ftp(user_id)
        ftp_value = ftp.value if ftp else settings.default_ftp

        activity = process_strava_activity(strava_activity, ftp_value, user_id)

        try:
            saved = await self.activity_repo.create_activity(activity)
        except DuplicateActivityError:
            logger.info(f"Activity {activity_id} was stored concurrently, skipping")
            return None
        logger.info(f"Created activity {activity_id} for user {user_id}")

        await self.enrichment_service.enrich(user_id, saved.id, activity_id, access_token)
        return saved

    async def handle_update(self, user_id: str, activity_id: int) -> CyclingActivity | None:
        """Replace an activity with a fresh copy: delete it if present, then recreate."""
        existing = await self.activity_repo.get_activity_by_strava_id(user_id, activity_id)
        if existing:
            await self.activity_repo.delete_activity(existing.id)
            logger.info(f"Deleted old version of activity {activity_id}")

        return await self.handle_create(user_id, activity_id)

    async def handle_delete(self, user_id: str, activity_id: int) -> bool:
        """Delete an activity and its streams; a missing activity is a no-op."""
        existing = await self.activity_repo.get_activity_by_strava_id(user_id, activity_id)
        if not existing:
            logger.info(f"Activity {activity_id} not found, nothing to delete")
            return False

        await self.activity_repo.delete_activity(existing.id)
        logger.info(f"Deleted activity {activity_id} for user {user_id}")
        return True
