from collections import Counter
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any

from gitwrapped.models import ContributionSummary
from gitwrapped.models import LanguageReport
from gitwrapped.models import LanguageUsage
from gitwrapped.models import RepoDetail

TOP_LANGUAGES_BY_REPO_COUNT = 5


def normalize_contributions(raw: Mapping[str, Any]) -> ContributionSummary:
    """Flatten a contribution calendar's weeks into a date-keyed map.

    Week grouping is discarded and the upstream `totalContributions` is kept
    as reported, without reconciling it against the map.
    """

    contribution_map: dict[str, int] = {}
    for week in raw.get("weeks") or []:
        if not isinstance(week, Mapping):
            continue
        for day in week.get("contributionDays") or []:
            if not isinstance(day, Mapping):
                continue
            raw_date = day.get("date")
            raw_count = day.get("contributionCount")
            if isinstance(raw_date, str) and isinstance(raw_count, int):
                contribution_map[raw_date] = raw_count

    return ContributionSummary(
        total_contributions=int(raw.get("totalContributions") or 0),
        contribution_map=contribution_map,
    )


def rank_languages(repositories: Iterable[Mapping[str, Any]]) -> LanguageReport:
    """Sum language byte sizes across repositories and rank them.

    Languages with equal size keep the order in which they were first seen.
    """

    language_sizes: dict[str, int] = {}
    repo_details: list[RepoDetail] = []

    for repo in repositories:
        edges = (repo.get("languages") or {}).get("edges") or []
        languages = [
            (edge["node"]["name"], edge.get("size", 0))
            for edge in edges
            if isinstance(edge, Mapping) and isinstance(edge.get("node"), Mapping)
        ]

        repo_details.append(
            RepoDetail(
                name=repo.get("name", ""),
                stars=(repo.get("stargazers") or {}).get("totalCount", 0),
                languages=tuple(name for name, _ in languages),
            )
        )

        for name, size in languages:
            language_sizes[name] = language_sizes.get(name, 0) + size

    ranked = sorted(language_sizes.items(), key=lambda item: item[1], reverse=True)
    return LanguageReport(
        top_languages=tuple(
            LanguageUsage(name=name, size=size) for name, size in ranked
        ),
        repo_details=tuple(repo_details),
    )


def count_repo_languages(
    repositories: Iterable[Mapping[str, Any]],
    limit: int = TOP_LANGUAGES_BY_REPO_COUNT,
) -> list[tuple[str, int]]:
    """Rank primary languages by how many repositories report them."""

    counts = Counter(
        repo["language"]
        for repo in repositories
        if isinstance(repo, Mapping) and repo.get("language")
    )
    return counts.most_common(limit)
