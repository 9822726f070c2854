import asyncio
import logging

from gitwrapped.github_api import GitHubClient
from gitwrapped.github_api import UpstreamQueryError
from gitwrapped.github_api import clean_username
from gitwrapped.models import UserProfile
from gitwrapped.models import WrappedData
from gitwrapped.services.aggregator import normalize_contributions
from gitwrapped.services.aggregator import rank_languages

logger = logging.getLogger(__name__)


class InvalidUsernameError(ValueError):
    """Raised when a username is empty after whitespace is removed."""


async def load_wrapped(client: GitHubClient, username: str, year: int) -> WrappedData:
    """Fetch and normalize everything the dashboard shows for one user.

    The upstream queries run concurrently; nothing is derived until all of
    them have completed. Any upstream failure is logged and re-raised.
    """

    login = clean_username(username)
    if not login:
        raise InvalidUsernameError("username cannot be empty")

    try:
        calendar, repositories, top_languages, profile = await asyncio.gather(
            client.fetch_contributions(login, year),
            client.fetch_repository_languages(login),
            client.fetch_top_languages_by_repo_count(login),
            client.fetch_user_profile(login),
        )
    except UpstreamQueryError as exc:
        logger.error("Error fetching GitHub data for %s: %s", login, exc.message)
        raise

    return WrappedData(
        username=login,
        year=year,
        profile=UserProfile(
            login=profile["login"],
            name=profile.get("name"),
            avatar_url=profile.get("avatar_url"),
            bio=profile.get("bio"),
            followers=profile.get("followers") or 0,
            following=profile.get("following") or 0,
            public_repos=profile.get("public_repos") or 0,
        ),
        contributions=normalize_contributions(calendar),
        languages=rank_languages(repositories),
        top_languages_by_repo_count=tuple(top_languages),
    )
