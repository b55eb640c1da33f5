from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.asynchronous.database import AsyncDatabase

from auth.oauth import verify_session_token
from clients.strava.client import StravaClient
from config import settings
from database.activity_repository import ActivityRepository
from database.athlete_repository import AthleteRepository
from database.mongodb import get_db
from services.activity_ingestion import ActivityIngestionService


security = HTTPBearer(auto_error=False)

IngestionServiceFactory = Callable[[], ActivityIngestionService]


async def get_athlete_repository(db: AsyncDatabase = Depends(get_db)) -> AthleteRepository:
    """Dependency to get athlete repository."""
    return AthleteRepository(db)


def build_ingestion_service() -> ActivityIngestionService:
    """Build the ingestion service against the connected database."""
    db = get_db()
    return ActivityIngestionService(AthleteRepository(db), ActivityRepository(db), StravaClient())


async def get_ingestion_service_factory() -> IngestionServiceFactory:
    """
    Dependency to get a factory for the activity ingestion service.

    The webhook endpoint acknowledges before anything touches the database,
    so the service is built lazily by the background task.
    """
    return build_ingestion_service


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> str:
    """
    Dependency to get current authenticated user ID from JWT token.

    In dev mode (when DEV_MODE=true and DEV_USER_ID is set),
    bypasses authentication and returns the configured user ID.
    """
    # Dev mode bypass
    if settings.dev_mode:
        if not settings.dev_user_id:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="DEV_MODE is enabled but DEV_USER_ID is not configured"
            )
        return settings.dev_user_id

    # Production authentication
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return verify_session_token(credentials.credentials)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
