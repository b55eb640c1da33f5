from unittest.mock import AsyncMock

from database.athlete_repository import AthleteRepository
from services.identity import IdentityResolver


async def test_resolves_connected_athlete():
    repo = AsyncMock(spec=AthleteRepository)
    repo.get_user_id_by_athlete_id.return_value = "user-1"

    user_id = await IdentityResolver(repo).resolve_user_id(12345)

    assert user_id == "user-1"
    repo.get_user_id_by_athlete_id.assert_awaited_once_with(12345)


async def test_unknown_athlete_resolves_to_none():
    repo = AsyncMock(spec=AthleteRepository)
    repo.get_user_id_by_athlete_id.return_value = None

    assert await IdentityResolver(repo).resolve_user_id(99999) is None


async def test_empty_mapping_value_is_treated_as_unknown():
    repo = AsyncMock(spec=AthleteRepository)
    repo.get_user_id_by_athlete_id.return_value = ""

    assert await IdentityResolver(repo).resolve_user_id(12345) is None
