"""Target-independent dashboard layout.

`build_layout` turns a `DashboardView` into a flat list of drawing
instructions. The interactive SVG view and the PNG rasterizer both consume
this description, so the exported image always matches the dashboard.
"""

from dataclasses import dataclass
from dataclasses import field
from typing import Literal

from gitwrapped.models import DashboardView

SHARE_WIDTH = 720
DASHBOARD_WIDTH = 1152
PADDING = 24
GAP = 16
SECTION_SPACING = 32

WHITE = "#ffffff"
CARD = "#f9fafb"
GRID = "#f3f4f6"
GRAY_400 = "#9ca3af"
GRAY_500 = "#6b7280"
GRAY_700 = "#374151"

WATERMARK = "Get your GitHub Wrapped at"

Anchor = Literal["start", "middle", "end"]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: str
    radius: float = 0


@dataclass(frozen=True)
class Text:
    """Single line of text; `y` is the baseline."""

    x: float
    y: float
    text: str
    size: int
    fill: str
    anchor: Anchor = "start"
    bold: bool = False


@dataclass(frozen=True)
class Polyline:
    points: tuple[tuple[float, float], ...]
    stroke: str
    width: float = 2


@dataclass(frozen=True)
class Avatar:
    x: float
    y: float
    size: int
    url: str | None


@dataclass(frozen=True)
class Monospace:
    """Fixed-pitch text block; every character occupies `cell_width`."""

    x: float
    y: float
    lines: tuple[str, ...]
    size: int
    fill: str
    line_height: float
    cell_width: float


Element = Rect | Text | Polyline | Avatar | Monospace


@dataclass(frozen=True)
class Layout:
    width: int
    height: int
    background: str
    elements: tuple[Element, ...] = field(default_factory=tuple)


def format_number(value: int | float) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def truncate(text: str, width: float, size: int) -> str:
    max_chars = max(1, int(width / (size * 0.55)))
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1].rstrip() + "…"


Section = tuple[list[Element], float]


def _header(view: DashboardView, x: float, y: float, width: float) -> Section:
    profile = view.data.profile
    height = 120
    text_x = x + 24 + 64 + 24
    text_width = width - (text_x - x) - 24
    name = truncate(profile.name or profile.login, text_width, 18)

    elements: list[Element] = [
        Rect(x, y, width, height, CARD, radius=4),
        Avatar(x + 24, y + 24, 64, profile.avatar_url),
        Text(text_x, y + 40, name, 18, GRAY_700),
        Text(text_x, y + 60, f"@{profile.login}", 13, GRAY_400),
    ]
    if profile.bio:
        bio = truncate(profile.bio, text_width, 13)
        elements.append(Text(text_x, y + 82, bio, 13, GRAY_500))

    counts = (
        f"{profile.followers} followers   {profile.following} following   "
        f"{profile.public_repos} repos"
    )
    elements.append(Text(text_x, y + 106, counts, 13, GRAY_700))
    return elements, height


def _stat_cards(view: DashboardView, x: float, y: float, width: float) -> Section:
    stats = view.stats
    cards = [
        ("Total Commits", stats.total_contributions),
        ("Daily Avg", stats.average_daily),
        ("Active Days", stats.active_days),
        ("Max Daily", stats.max_daily),
    ]
    height = 64
    card_width = (width - GAP * (len(cards) - 1)) / len(cards)

    elements: list[Element] = []
    for index, (label, value) in enumerate(cards):
        card_x = x + index * (card_width + GAP)
        elements.append(Rect(card_x, y, card_width, height, CARD, radius=4))
        elements.append(Text(card_x + 12, y + 22, label, 11, GRAY_400))
        elements.append(
            Text(card_x + 12, y + 48, format_number(value), 18, GRAY_700)
        )
    return elements, height


def _ascii_block(view: DashboardView, x: float, y: float, width: float) -> Section:
    lines = tuple(view.ascii_graph.splitlines())
    line_height = 14
    height = len(lines) * line_height + 24
    return [
        Rect(x, y, width, height, CARD, radius=4),
        Monospace(x + 16, y + 23, lines, 11, GRAY_500, line_height, cell_width=7),
    ], height


def _languages(view: DashboardView, x: float, y: float, width: float) -> Section:
    languages = view.data.top_languages_by_repo_count
    if not languages:
        return [], 0

    row_height = 22
    height = 40 + len(languages) * row_height
    elements: list[Element] = [
        Rect(x, y, width, height, CARD, radius=4),
        Text(x + 16, y + 26, "Top Languages", 13, GRAY_500),
    ]
    for index, (language, count) in enumerate(languages):
        row_y = y + 50 + index * row_height
        elements.append(Text(x + 16, row_y, language, 13, GRAY_700))
        elements.append(
            Text(x + width - 16, row_y, f"{count} repos", 13, GRAY_500, anchor="end")
        )
    return elements, height


@dataclass(frozen=True)
class Plot:
    x: float
    y: float
    width: float
    height: float


def _chart_frame(
    title: str,
    peak: int,
    date_range: tuple[str, str] | None,
    x: float,
    y: float,
    width: float,
    height: float,
) -> tuple[list[Element], Plot]:
    plot = Plot(x + 40, y + 40, width - 56, height - 72)
    bottom = plot.y + plot.height

    elements: list[Element] = [
        Rect(x, y, width, height, CARD, radius=4),
        Text(x + 16, y + 26, title, 13, GRAY_500),
    ]
    for step in range(5):
        grid_y = plot.y + plot.height * step / 4
        elements.append(Rect(plot.x, grid_y, plot.width, 1, GRID))
    axis_x = plot.x - 6
    elements.append(Text(axis_x, plot.y + 4, str(peak), 10, GRAY_400, anchor="end"))
    elements.append(Text(axis_x, bottom + 4, "0", 10, GRAY_400, anchor="end"))

    if date_range:
        first, last = date_range
        right = plot.x + plot.width
        elements.append(Text(plot.x, bottom + 18, first, 10, GRAY_400))
        elements.append(Text(right, bottom + 18, last, 10, GRAY_400, anchor="end"))
    else:
        center = (plot.x + plot.width / 2, plot.y + plot.height / 2)
        elements.append(
            Text(*center, "No contributions yet", 12, GRAY_400, anchor="middle")
        )
    return elements, plot


def _charts(view: DashboardView, x: float, y: float, width: float) -> Section:
    height = 252
    chart_width = (width - PADDING) / 2
    date_range = (view.daily[0].date, view.daily[-1].date) if view.daily else None

    daily_peak = max((point.contributions for point in view.daily), default=0)
    elements, plot = _chart_frame(
        "Daily Activity", daily_peak, date_range, x, y, chart_width, height
    )
    if daily_peak:
        bar_width = plot.width / len(view.daily)
        for index, point in enumerate(view.daily):
            if point.contributions <= 0:
                continue
            bar_height = plot.height * point.contributions / daily_peak
            elements.append(
                Rect(
                    plot.x + index * bar_width,
                    plot.y + plot.height - bar_height,
                    max(bar_width * 0.8, 0.5),
                    bar_height,
                    GRAY_400,
                )
            )

    cumulative_peak = view.cumulative[-1].cumulative if view.cumulative else 0
    line_elements, plot = _chart_frame(
        "Cumulative Growth",
        cumulative_peak,
        date_range,
        x + chart_width + PADDING,
        y,
        chart_width,
        height,
    )
    elements.extend(line_elements)
    if cumulative_peak:
        step = plot.width / max(len(view.cumulative) - 1, 1)
        points = tuple(
            (
                plot.x + index * step,
                plot.y + plot.height - plot.height * point.cumulative / cumulative_peak,
            )
            for index, point in enumerate(view.cumulative)
        )
        elements.append(Polyline(points, GRAY_400, 2))
    return elements, height


def _watermark(site_label: str, x: float, y: float, width: float) -> Section:
    center = x + width / 2
    return [
        Text(center, y + 24, WATERMARK, 16, GRAY_500, anchor="middle"),
        Text(center, y + 52, site_label, 20, GRAY_700, anchor="middle", bold=True),
    ], 64


def build_layout(
    view: DashboardView, share: bool = False, site_label: str = ""
) -> Layout:
    """Lay out the dashboard as drawing instructions.

    The share variant is the fixed-width layout used for image export and
    carries the watermark; the interactive variant is wider and omits it.
    """

    width = SHARE_WIDTH if share else DASHBOARD_WIDTH
    inner_width = width - 2 * PADDING
    sections = [_header, _stat_cards, _ascii_block, _languages, _charts]

    elements: list[Element] = []
    y = PADDING
    for section in sections:
        section_elements, height = section(view, PADDING, y, inner_width)
        if not height:
            continue
        elements.extend(section_elements)
        y += height + SECTION_SPACING

    if share and site_label:
        section_elements, height = _watermark(site_label, PADDING, y, inner_width)
        elements.extend(section_elements)
        y += height + SECTION_SPACING

    return Layout(
        width=width,
        height=int(y - SECTION_SPACING + PADDING),
        background=WHITE,
        elements=tuple(elements),
    )
