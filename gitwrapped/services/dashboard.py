import logging
from collections.abc import Mapping
from collections.abc import Sequence
from datetime import date
from decimal import ROUND_HALF_UP
from decimal import Decimal

from gitwrapped.models import CumulativePoint
from gitwrapped.models import DailyPoint
from gitwrapped.models import DashboardView
from gitwrapped.models import DerivedStats
from gitwrapped.models import WrappedData
from gitwrapped.services.ascii_graph import render_ascii_graph

logger = logging.getLogger(__name__)


def compute_stats(
    contribution_map: Mapping[str, int], total_contributions: int
) -> DerivedStats:
    """Derive summary card values.

    The upstream total is used as-is for both the total and the daily
    average. An empty map yields zeros instead of a division error.
    """

    values = list(contribution_map.values())
    if not values:
        return DerivedStats(
            total_contributions=total_contributions,
            average_daily=0.0,
            active_days=0,
            max_daily=0,
        )

    if sum(values) != total_contributions:
        logger.debug(
            "Upstream total %s differs from daily sum %s",
            total_contributions,
            sum(values),
        )

    return DerivedStats(
        total_contributions=total_contributions,
        average_daily=_average(total_contributions, len(values)),
        active_days=sum(1 for value in values if value > 0),
        max_daily=max(values),
    )


def _average(total: int, days: int) -> float:
    # Halves round up, so 0.25 shows as 0.3 rather than 0.2.
    average = Decimal(total) / Decimal(days)
    return float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def build_daily_series(contribution_map: Mapping[str, int]) -> list[DailyPoint]:
    return [
        DailyPoint(date=day, contributions=count)
        for day, count in sorted(
            contribution_map.items(), key=lambda item: date.fromisoformat(item[0])
        )
    ]


def build_cumulative_series(daily: Sequence[DailyPoint]) -> list[CumulativePoint]:
    running = 0
    series: list[CumulativePoint] = []
    for point in daily:
        running += point.contributions
        series.append(
            CumulativePoint(
                date=point.date,
                contributions=point.contributions,
                cumulative=running,
            )
        )
    return series


def build_dashboard_view(data: WrappedData) -> DashboardView:
    """Derive everything the renderers need from one data load."""

    summary = data.contributions
    daily = build_daily_series(summary.contribution_map)
    return DashboardView(
        data=data,
        stats=compute_stats(summary.contribution_map, summary.total_contributions),
        daily=tuple(daily),
        cumulative=tuple(build_cumulative_series(daily)),
        ascii_graph=render_ascii_graph(daily),
    )
