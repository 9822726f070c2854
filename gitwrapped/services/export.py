import asyncio
import logging
from dataclasses import dataclass

from gitwrapped.github_api import GitHubClient
from gitwrapped.github_api import UpstreamQueryError
from gitwrapped.models import DashboardView
from gitwrapped.services.layout import build_layout
from gitwrapped.services.rendering import IMAGE_ERRORS
from gitwrapped.services.rendering import rasterize_png

logger = logging.getLogger(__name__)


def export_filename(username: str, year: int) -> str:
    return f"{username}-github-wrapped-{year}.png"


@dataclass(frozen=True)
class ExportResult:
    filename: str
    content: bytes
    media_type: str = "image/png"


class ImageExporter:
    """Rasterize the share layout of a dashboard into a downloadable PNG.

    Holds the only mutable state of the presentation layer: the set of
    users with an export in flight and the last embedded avatar.
    """

    def __init__(
        self,
        scale: int = 2,
        background: str = "#ffffff",
        site_label: str = "",
    ) -> None:
        self.scale = scale
        self.background = background
        self.site_label = site_label
        self._in_progress: set[str] = set()
        self._avatar_cache: tuple[str, bytes] | None = None

    def is_exporting(self, username: str) -> bool:
        return username.lower() in self._in_progress

    async def embed_avatar(self, url: str, client: GitHubClient) -> bytes:
        """Download the avatar once per URL so it can be drawn locally."""

        if self._avatar_cache and self._avatar_cache[0] == url:
            return self._avatar_cache[1]

        content = await client.fetch_avatar(url)
        self._avatar_cache = (url, content)
        return content

    async def export_to_image(
        self, view: DashboardView, client: GitHubClient
    ) -> ExportResult | None:
        """Run avatar embedding, layout and rasterization in sequence.

        Returns None when an export for the same user is already running or
        when any step fails; failures are logged and never re-raised.
        """

        username = view.data.username
        key = username.lower()
        if key in self._in_progress:
            logger.info("Export for %s already in progress", username)
            return None

        self._in_progress.add(key)
        try:
            avatar_url = view.data.profile.avatar_url
            avatar = await self.embed_avatar(avatar_url, client) if avatar_url else None

            layout = build_layout(view, share=True, site_label=self.site_label)
            content = await asyncio.to_thread(
                rasterize_png, layout, avatar, self.scale, self.background
            )
        except (UpstreamQueryError, *IMAGE_ERRORS):
            logger.exception("Error generating PNG for %s", username)
            return None
        finally:
            self._in_progress.discard(key)

        logger.info("Generated %s byte PNG for %s", len(content), username)
        return ExportResult(
            filename=export_filename(username, view.data.year), content=content
        )
