import logging
from datetime import datetime, timezone
from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from models.athlete import AthleteUserMapping, CyclingProfile, FTPEntry, StravaTokens

logger = logging.getLogger(__name__)


class AthleteRepository:
    """Repository for credentials, identity mapping and athlete settings in MongoDB."""

    def __init__(self, db: AsyncDatabase):
        self.db = db
        self.tokens_collection = db["strava_tokens"]
        self.mappings_collection = db["athlete_to_user"]
        self.ftp_collection = db["ftp_history"]
        self.profiles_collection = db["cycling_profiles"]

    async def get_tokens(self, user_id: str) -> StravaTokens | None:
        """Get Strava tokens for a user."""
        doc = await self.tokens_collection.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return StravaTokens(**doc)
        return None

    async def save_tokens(self, tokens: StravaTokens) -> StravaTokens:
        """Save or update Strava tokens for a user."""
        tokens.updated_at = datetime.now(timezone.utc)

        await self.tokens_collection.update_one(
            {"user_id": tokens.user_id},
            {"$set": tokens.model_dump()},
            upsert=True
        )
        logger.info(f"Saved Strava tokens for user {tokens.user_id} (athlete {tokens.athlete_id}, expires {tokens.expires_at})")
        return tokens

    async def get_user_id_by_athlete_id(self, athlete_id: int) -> str | None:
        """Look up the internal user ID for a Strava athlete ID."""
        doc = await self.mappings_collection.find_one({"athlete_id": athlete_id})
        if doc:
            return doc.get("user_id")
        return None

    async def set_athlete_mapping(self, athlete_id: int, user_id: str) -> AthleteUserMapping:
        """Point a Strava athlete ID at an internal user."""
        mapping = AthleteUserMapping(athlete_id=athlete_id, user_id=user_id)
        await self.mappings_collection.update_one(
            {"athlete_id": athlete_id},
            {"$set": mapping.model_dump()},
            upsert=True
        )
        logger.info(f"Mapped athlete {athlete_id} to user {user_id}")
        return mapping

    async def get_current_ftp(self, user_id: str) -> FTPEntry | None:
        """Get the most recent FTP entry for a user."""
        cursor = self.ftp_collection.find({"user_id": user_id}).sort("date", DESCENDING).limit(1)
        async for doc in cursor:
            doc.pop("_id", None)
            return FTPEntry(**doc)
        return None

    async def get_cycling_profile(self, user_id: str) -> CyclingProfile | None:
        """Get the cycling profile (weight, HR) for a user."""
        doc = await self.profiles_collection.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return CyclingProfile(**doc)
        return None
