import logging
from collections.abc import Mapping
from typing import Any

import httpx

from gitwrapped.services.aggregator import count_repo_languages
from gitwrapped.settings import Settings

logger = logging.getLogger(__name__)

USER_AGENT = "gitwrapped"

CONTRIBUTIONS_QUERY = """
query ContributionGraph($username: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $username) {
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            contributionCount
            date
          }
        }
      }
    }
  }
}
"""

REPOSITORIES_QUERY = """
query Repositories($username: String!) {
  user(login: $username) {
    repositories(first: 100, ownerAffiliations: OWNER, isFork: false) {
      nodes {
        name
        languages(first: 10) {
          edges {
            size
            node {
              name
              color
            }
          }
        }
        stargazers {
          totalCount
        }
      }
    }
  }
}
"""


class UpstreamQueryError(Exception):
    """Raised when a GitHub request fails or returns an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def clean_username(username: str) -> str:
    """Remove every whitespace character from a username."""

    return "".join(username.split())


class GitHubClient:
    """Async GitHub API client with an explicitly injected credential."""

    def __init__(
        self,
        token: str,
        graphql_url: str = "https://api.github.com/graphql",
        api_base_url: str = "https://api.github.com",
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.graphql_url = graphql_url
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "GitHubClient":
        return cls(
            token=settings.github_token,
            graphql_url=settings.github_graphql_url,
            api_base_url=settings.github_api_base_url,
            timeout=settings.github_timeout_seconds,
            transport=transport,
        )

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
        )

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._http() as http:
                response = await http.get(url, **kwargs)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _status_error(exc) from exc
        except httpx.HTTPError as exc:
            logger.error("GitHub request to %s failed: %s", url, exc)
            raise UpstreamQueryError(f"GitHub request failed: {exc}") from exc
        return response

    async def _graphql(
        self, query: str, variables: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        if not self.token:
            raise UpstreamQueryError("GITHUB_TOKEN is required for GraphQL requests")

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        try:
            async with self._http() as http:
                response = await http.post(
                    self.graphql_url,
                    json={"query": query, "variables": dict(variables)},
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _status_error(exc) from exc
        except httpx.HTTPError as exc:
            logger.error("GitHub GraphQL request failed: %s", exc)
            raise UpstreamQueryError(f"GitHub request failed: {exc}") from exc

        payload = _decode(response)
        if not isinstance(payload, Mapping):
            raise UpstreamQueryError("GitHub GraphQL response is invalid")

        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else {}
            if not isinstance(first, Mapping):
                first = {}
            message = first.get("message", "GitHub GraphQL returned errors")
            status_code = 404 if first.get("type") == "NOT_FOUND" else None
            logger.error("GitHub GraphQL returned errors: %s", message)
            raise UpstreamQueryError(message, status_code=status_code)

        data = payload.get("data")
        if not isinstance(data, Mapping):
            raise UpstreamQueryError("GitHub GraphQL data is missing")

        user = data.get("user")
        if not isinstance(user, Mapping):
            raise UpstreamQueryError("GitHub user not found", status_code=404)

        return user

    async def fetch_contributions(self, username: str, year: int) -> Mapping[str, Any]:
        """Fetch the raw contribution calendar for a full calendar year."""

        user = await self._graphql(
            CONTRIBUTIONS_QUERY,
            {
                "username": clean_username(username),
                "from": f"{year}-01-01T00:00:00Z",
                "to": f"{year}-12-31T23:59:59Z",
            },
        )

        collection = user.get("contributionsCollection")
        if not isinstance(collection, Mapping):
            raise UpstreamQueryError("GitHub contributionsCollection is missing")

        calendar = collection.get("contributionCalendar")
        if not isinstance(calendar, Mapping):
            raise UpstreamQueryError("GitHub contributionCalendar is missing")

        return calendar

    async def fetch_repository_languages(
        self, username: str
    ) -> list[Mapping[str, Any]]:
        """Fetch up to 100 owned, non-fork repositories with their languages."""

        user = await self._graphql(
            REPOSITORIES_QUERY, {"username": clean_username(username)}
        )

        repositories = user.get("repositories")
        if not isinstance(repositories, Mapping):
            raise UpstreamQueryError("GitHub repositories are missing")

        nodes = repositories.get("nodes")
        if not isinstance(nodes, list):
            raise UpstreamQueryError("GitHub repository nodes are missing")

        return [node for node in nodes if isinstance(node, Mapping)]

    async def fetch_repositories(self, username: str) -> list[Mapping[str, Any]]:
        """List up to 100 public repositories through the unauthenticated REST API."""

        response = await self._get(
            f"{self.api_base_url}/users/{clean_username(username)}/repos",
            params={"per_page": 100},
            headers={"Accept": "application/vnd.github+json"},
        )
        payload = _decode(response)
        if not isinstance(payload, list):
            raise UpstreamQueryError("GitHub repository listing is invalid")
        return payload

    async def fetch_top_languages_by_repo_count(
        self, username: str
    ) -> list[tuple[str, int]]:
        repositories = await self.fetch_repositories(username)
        return count_repo_languages(repositories)

    async def fetch_user_profile(self, username: str) -> Mapping[str, Any]:
        """Fetch public profile fields for the dashboard header."""

        response = await self._get(
            f"{self.api_base_url}/users/{clean_username(username)}",
            headers={"Accept": "application/vnd.github+json"},
        )
        payload = _decode(response)
        if not isinstance(payload, Mapping) or not payload.get("login"):
            raise UpstreamQueryError("GitHub user response is invalid")
        return payload

    async def fetch_avatar(self, url: str) -> bytes:
        response = await self._get(url, follow_redirects=True)
        return response.content


def _status_error(exc: httpx.HTTPStatusError) -> UpstreamQueryError:
    status_code = exc.response.status_code
    try:
        body = exc.response.json()
    except ValueError:
        body = None
    message = body.get("message") if isinstance(body, Mapping) else None
    detail = message or exc.response.reason_phrase or "request failed"

    logger.error(
        "GitHub responded with %s for %s: %s", status_code, exc.request.url, detail
    )
    return UpstreamQueryError(
        f"GitHub API responded with {status_code}: {detail}", status_code=status_code
    )


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamQueryError("GitHub returned a non-JSON response") from exc
