from database.athlete_repository import AthleteRepository


class IdentityResolver:
    """Maps Strava athlete IDs to internal user IDs."""

    def __init__(self, athlete_repo: AthleteRepository):
        self.athlete_repo = athlete_repo

    async def resolve_user_id(self, athlete_id: int) -> str | None:
        """Return the user connected to a Strava athlete, or None if not connected."""
        user_id = await self.athlete_repo.get_user_id_by_athlete_id(athlete_id)
        return user_id or None
