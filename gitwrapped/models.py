from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ContributionDay(FrozenModel):
    """Single calendar day with its contribution count."""

    date: str
    count: int = Field(ge=0)


class ContributionSummary(FrozenModel):
    """Date-keyed contribution counts plus the upstream-reported total."""

    total_contributions: int
    contribution_map: dict[str, int]


class LanguageUsage(FrozenModel):
    name: str
    size: int


class RepoDetail(FrozenModel):
    name: str
    stars: int
    languages: tuple[str, ...]


class LanguageReport(FrozenModel):
    """Byte-size weighted language ranking with per-repository details."""

    top_languages: tuple[LanguageUsage, ...]
    repo_details: tuple[RepoDetail, ...]


class UserProfile(FrozenModel):
    login: str
    name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    followers: int = 0
    following: int = 0
    public_repos: int = 0


class DerivedStats(FrozenModel):
    total_contributions: int
    average_daily: float
    active_days: int
    max_daily: int


class DailyPoint(FrozenModel):
    date: str
    contributions: int


class CumulativePoint(FrozenModel):
    date: str
    contributions: int
    cumulative: int


class WrappedData(FrozenModel):
    """Everything fetched for one user and year in a single data load."""

    username: str
    year: int
    profile: UserProfile
    contributions: ContributionSummary
    languages: LanguageReport
    top_languages_by_repo_count: tuple[tuple[str, int], ...]


class DashboardView(FrozenModel):
    """Render-ready bundle derived from `WrappedData`."""

    data: WrappedData
    stats: DerivedStats
    daily: tuple[DailyPoint, ...]
    cumulative: tuple[CumulativePoint, ...]
    ascii_graph: str
