import io
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from gitwrapped.api.dependencies import get_github_client
from gitwrapped.github_api import GitHubClient
from gitwrapped.main import create_app
from gitwrapped.models import DashboardView
from gitwrapped.models import UserProfile
from gitwrapped.models import WrappedData
from gitwrapped.services.aggregator import normalize_contributions
from gitwrapped.services.aggregator import rank_languages
from gitwrapped.services.dashboard import build_dashboard_view
from gitwrapped.settings import Settings


GRAPHQL_URL = "https://api.github.test/graphql"
API_BASE_URL = "https://api.github.test"
AVATAR_URL = "https://avatars.github.test/u/583231"


def make_png(color: str = "red", size: int = 4) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeGitHub:
    """In-memory stand-in for the GitHub GraphQL and REST endpoints."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.calendar = {
            "totalContributions": 8,
            "weeks": [
                {
                    "contributionDays": [
                        {"contributionCount": 3, "date": "2024-01-01"},
                        {"contributionCount": 0, "date": "2024-01-02"},
                    ]
                },
                {"contributionDays": [{"contributionCount": 5, "date": "2024-01-03"}]},
            ],
        }
        self.repository_nodes = [
            {
                "name": "alpha",
                "languages": {
                    "edges": [
                        {"size": 100, "node": {"name": "Python", "color": "#3572A5"}},
                        {"size": 50, "node": {"name": "Go", "color": "#00ADD8"}},
                    ]
                },
                "stargazers": {"totalCount": 3},
            },
            {
                "name": "beta",
                "languages": {
                    "edges": [
                        {"size": 50, "node": {"name": "Rust", "color": "#dea584"}},
                        {"size": 20, "node": {"name": "Go", "color": "#00ADD8"}},
                    ]
                },
                "stargazers": {"totalCount": 1},
            },
        ]
        self.rest_repos = [
            {"name": "a", "language": "Go"},
            {"name": "b", "language": "Go"},
            {"name": "c", "language": None},
            {"name": "d", "language": "Rust"},
        ]
        self.profile = {
            "login": "octocat",
            "name": "The Octocat",
            "avatar_url": AVATAR_URL,
            "bio": "Ships things",
            "followers": 10,
            "following": 2,
            "public_repos": 8,
        }
        self.avatar = make_png()
        self.graphql_status = 200
        self.user_missing = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == "avatars.github.test":
            return httpx.Response(200, content=self.avatar)

        if request.url.path == "/graphql":
            if self.graphql_status != 200:
                return httpx.Response(
                    self.graphql_status, json={"message": "Bad credentials"}
                )
            if self.user_missing:
                return httpx.Response(
                    200,
                    json={
                        "data": {"user": None},
                        "errors": [
                            {
                                "type": "NOT_FOUND",
                                "message": "Could not resolve to a User",
                            }
                        ],
                    },
                )
            body = json.loads(request.content)
            if "contributionsCollection" in body["query"]:
                user = {
                    "contributionsCollection": {"contributionCalendar": self.calendar}
                }
            else:
                user = {"repositories": {"nodes": self.repository_nodes}}
            return httpx.Response(200, json={"data": {"user": user}})

        if request.url.path == "/users/octocat/repos":
            return httpx.Response(200, json=self.rest_repos)

        if request.url.path == "/users/octocat":
            return httpx.Response(200, json=self.profile)

        return httpx.Response(404, json={"message": "Not Found"})

    def graphql_variables(self) -> list[dict[str, object]]:
        return [
            json.loads(request.content)["variables"]
            for request in self.requests
            if request.url.path == "/graphql"
        ]


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def github_client(fake_github: FakeGitHub) -> GitHubClient:
    return GitHubClient(
        token="test-token",
        graphql_url=GRAPHQL_URL,
        api_base_url=API_BASE_URL,
        transport=httpx.MockTransport(fake_github),
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        github_token="test-token",
        github_graphql_url=GRAPHQL_URL,
        github_api_base_url=API_BASE_URL,
        wrapped_year=2024,
        sentry_dsn=None,
    )


@pytest.fixture
def api_client(test_settings: Settings, github_client: GitHubClient) -> TestClient:
    app = create_app(test_settings)
    app.dependency_overrides[get_github_client] = lambda: github_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_wrapped_data(fake: FakeGitHub, empty: bool = False) -> WrappedData:
    calendar = {"totalContributions": 0, "weeks": []} if empty else fake.calendar
    return WrappedData(
        username="octocat",
        year=2024,
        profile=UserProfile(**fake.profile),
        contributions=normalize_contributions(calendar),
        languages=rank_languages([] if empty else fake.repository_nodes),
        top_languages_by_repo_count=() if empty else (("Go", 2), ("Rust", 1)),
    )


@pytest.fixture
def dashboard_view(fake_github: FakeGitHub) -> DashboardView:
    return build_dashboard_view(make_wrapped_data(fake_github))


@pytest.fixture
def empty_view(fake_github: FakeGitHub) -> DashboardView:
    return build_dashboard_view(make_wrapped_data(fake_github, empty=True))
