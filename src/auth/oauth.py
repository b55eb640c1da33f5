import logging
import time
from datetime import datetime, timezone
from jose import jwt, JWTError

from clients.strava.client import StravaClient
from config import settings
from database.athlete_repository import AthleteRepository
from models.athlete import StravaTokens

logger = logging.getLogger(__name__)


class MissingClientCredentialsError(Exception):
    """Raised when a token refresh is due but the Strava app credentials are not configured."""


def tokens_expired(tokens: StravaTokens, buffer_seconds: int | None = None) -> bool:
    """Check if tokens are expired or will expire within the buffer."""
    buffer = settings.token_refresh_buffer_seconds if buffer_seconds is None else buffer_seconds
    current_time = int(time.time())
    return current_time >= tokens.expires_at - buffer


class StravaOAuthService:
    """Service for Strava token lifecycle and app session tokens."""

    def __init__(self, athlete_repo: AthleteRepository, strava_client: StravaClient):
        self.athlete_repo = athlete_repo
        self.strava_client = strava_client

    async def refresh_access_token(self, tokens: StravaTokens) -> StravaTokens:
        """
        Refresh the access token using the refresh token.

        The token set is updated in place and persisted. Concurrent refreshes
        for the same user are not coordinated; the last write wins.
        """
        if not settings.strava_client_configured:
            raise MissingClientCredentialsError(
                "STRAVA_CLIENT_ID and STRAVA_CLIENT_SECRET must be set to refresh tokens"
            )

        refreshed = await self.strava_client.refresh_tokens(
            settings.strava_client_id,
            settings.strava_client_secret,
            tokens.refresh_token
        )

        # Update tokens
        tokens.access_token = refreshed.access_token
        tokens.refresh_token = refreshed.refresh_token
        tokens.expires_at = refreshed.expires_at
        if refreshed.athlete_id:
            tokens.athlete_id = refreshed.athlete_id

        # Save updated tokens
        await self.athlete_repo.save_tokens(tokens)
        logger.info(f"Refreshed Strava tokens for user {tokens.user_id}, new expiry {tokens.expires_at}")

        return tokens

    async def ensure_fresh_tokens(self, tokens: StravaTokens) -> StravaTokens:
        """Return valid tokens, refreshing first if they are expired."""
        if tokens_expired(tokens):
            return await self.refresh_access_token(tokens)
        return tokens


def create_session_token(user_id: str) -> str:
    """Create a JWT session token for a user."""
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc).timestamp() + (settings.jwt_access_token_expire_minutes * 60),
        "iat": datetime.now(timezone.utc).timestamp()
    }

    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token


def verify_session_token(token: str) -> str:
    """Verify JWT session token and return the user ID."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise ValueError("Invalid or expired session token")

    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Invalid token payload")
    return user_id
