from pydantic import BaseModel

from gitwrapped.models import CumulativePoint
from gitwrapped.models import DailyPoint
from gitwrapped.models import DashboardView
from gitwrapped.models import DerivedStats
from gitwrapped.models import LanguageUsage
from gitwrapped.models import RepoDetail
from gitwrapped.models import UserProfile


class RepoLanguageCount(BaseModel):
    """Primary language with the number of repositories reporting it."""

    name: str
    repos: int


class WrappedResponse(BaseModel):
    """Year-in-review payload for a single GitHub user."""

    username: str
    year: int
    profile: UserProfile
    total_contributions: int
    contribution_map: dict[str, int]
    stats: DerivedStats
    daily: list[DailyPoint]
    cumulative: list[CumulativePoint]
    top_languages: list[LanguageUsage]
    repo_details: list[RepoDetail]
    top_languages_by_repo_count: list[RepoLanguageCount]

    @classmethod
    def from_view(cls, view: DashboardView) -> "WrappedResponse":
        data = view.data
        return cls(
            username=data.username,
            year=data.year,
            profile=data.profile,
            total_contributions=data.contributions.total_contributions,
            contribution_map=data.contributions.contribution_map,
            stats=view.stats,
            daily=list(view.daily),
            cumulative=list(view.cumulative),
            top_languages=list(data.languages.top_languages),
            repo_details=list(data.languages.repo_details),
            top_languages_by_repo_count=[
                RepoLanguageCount(name=name, repos=count)
                for name, count in data.top_languages_by_repo_count
            ],
        )
