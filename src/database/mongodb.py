import logging

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from config import settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages MongoDB database connections using async PyMongo."""

    def __init__(self):
        self.client: AsyncMongoClient | None = None
        self.db: AsyncDatabase | None = None

    async def connect(self):
        """Connect to MongoDB and make sure the pipeline's indexes exist."""
        try:
            logger.info(f"Connecting to MongoDB at {settings.mongodb_url}")
            self.client = AsyncMongoClient(settings.mongodb_url)
            self.db = self.client[settings.mongodb_database]

            # Test the connection
            await self.client.admin.command("ping")
            logger.info("Successfully connected to MongoDB")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

        await self.ensure_indexes()

    async def ensure_indexes(self):
        """Create lookup indexes; (user_id, strava_id) is the dedup key."""
        if self.db is None:
            raise RuntimeError("Database not connected. Call db_manager.connect() first.")

        await self.db["cycling_activities"].create_index(
            [("user_id", ASCENDING), ("strava_id", ASCENDING)],
            unique=True,
            name="user_strava_activity_unique"
        )
        await self.db["cycling_activities"].create_index("activity_id", unique=True)
        await self.db["activity_streams"].create_index("activity_id", unique=True)
        await self.db["strava_tokens"].create_index("user_id", unique=True)
        await self.db["athlete_to_user"].create_index("athlete_id", unique=True)
        await self.db["ftp_history"].create_index([("user_id", ASCENDING), ("date", DESCENDING)])
        await self.db["vo2max_estimates"].create_index([("user_id", ASCENDING), ("date", DESCENDING)])
        logger.info("MongoDB indexes ensured")

    async def disconnect(self):
        """Disconnect from MongoDB."""
        if self.client:
            await self.client.close()
            logger.info("Disconnected from MongoDB")

    async def ping(self) -> bool:
        """
        Check if database connection is alive.

        Returns:
            True if connection is alive, False otherwise
        """
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return False


# Global database manager instance
db_manager = DatabaseManager()


def get_db() -> AsyncDatabase:
    """
    Dependency function to get database instance for FastAPI.

    Returns the database directly without context manager.
    """
    if db_manager.db is None:
        raise RuntimeError("Database not connected. Call db_manager.connect() first.")
    return db_manager.db
