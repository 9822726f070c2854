import math
from collections.abc import Sequence

from gitwrapped.models import DailyPoint

EMPTY_GRAPH = "no contributions"


def render_ascii_graph(
    daily: Sequence[DailyPoint],
    height: int = 6,
    bucket_days: int = 7,
    glyph: str = "#",
) -> str:
    """Draw the daily series as a column chart of weekly totals.

    Each column sums `bucket_days` consecutive points. The top row is
    labelled with the busiest bucket, the last line shows the date range.
    """

    if not daily:
        return EMPTY_GRAPH

    totals = [
        sum(point.contributions for point in daily[start : start + bucket_days])
        for start in range(0, len(daily), bucket_days)
    ]
    peak = max(totals)
    levels = [math.ceil(total * height / peak) if peak else 0 for total in totals]
    width = len(str(peak))

    lines = []
    for row in range(height, 0, -1):
        label = str(peak) if row == height else ""
        bars = "".join(glyph if level >= row else " " for level in levels)
        lines.append(f"{label:>{width}} |{bars}")
    lines.append(f"{'0':>{width}} +{'-' * len(levels)}")
    lines.append(f"{'':>{width}}  {daily[0].date} .. {daily[-1].date}")
    return "\n".join(lines)
