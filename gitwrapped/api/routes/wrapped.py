import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.responses import PlainTextResponse
from fastapi.responses import Response
from fastapi.templating import Jinja2Templates

from gitwrapped.api.dependencies import get_exporter
from gitwrapped.api.dependencies import get_github_client
from gitwrapped.api.dependencies import get_settings
from gitwrapped.api.schemas.wrapped import WrappedResponse
from gitwrapped.github_api import GitHubClient
from gitwrapped.github_api import UpstreamQueryError
from gitwrapped.models import DashboardView
from gitwrapped.services.dashboard import build_dashboard_view
from gitwrapped.services.export import ImageExporter
from gitwrapped.services.export import export_filename
from gitwrapped.services.layout import build_layout
from gitwrapped.services.rendering import IMAGE_ERRORS
from gitwrapped.services.rendering import avatar_data_uri
from gitwrapped.services.rendering import render_svg
from gitwrapped.services.wrapped_service import InvalidUsernameError
from gitwrapped.services.wrapped_service import load_wrapped
from gitwrapped.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()

YearQuery = Annotated[int | None, Query(ge=2008, le=9999)]

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"

templates = Jinja2Templates(directory=TEMPLATES_DIR)


async def load_dashboard_view(
    username: str, year: int | None, client: GitHubClient, settings: Settings
) -> DashboardView:
    try:
        data = await load_wrapped(client, username, year or settings.wrapped_year)
    except InvalidUsernameError as exc:
        raise HTTPException(status_code=400, detail="username cannot be empty") from exc
    except UpstreamQueryError as exc:
        if exc.status_code == 404:
            raise HTTPException(
                status_code=404, detail="GitHub user not found"
            ) from exc
        raise HTTPException(
            status_code=502, detail=f"GitHub API request failed: {exc.message}"
        ) from exc

    return build_dashboard_view(data)


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Hello World"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/wrapped/{username}", response_model=WrappedResponse)
async def get_wrapped(
    username: str,
    year: YearQuery = None,
    client: GitHubClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
) -> WrappedResponse:
    """Return contributions, derived stats and language rankings as JSON."""

    view = await load_dashboard_view(username, year, client, settings)
    return WrappedResponse.from_view(view)


@router.get("/wrapped/{username}/dashboard.svg")
async def get_dashboard_svg(
    username: str,
    year: YearQuery = None,
    client: GitHubClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
    exporter: ImageExporter = Depends(get_exporter),
) -> Response:
    """Return the dashboard as a standalone SVG with the avatar inlined.

    The remote avatar URL is kept when the avatar cannot be fetched.
    """

    view = await load_dashboard_view(username, year, client, settings)
    avatar_href = None
    avatar_url = view.data.profile.avatar_url
    if avatar_url:
        try:
            content = await exporter.embed_avatar(avatar_url, client)
            avatar_href = avatar_data_uri(content)
        except (UpstreamQueryError, *IMAGE_ERRORS) as exc:
            logger.warning(
                "Could not inline avatar for %s: %s", view.data.username, exc
            )
    svg = render_svg(build_layout(view), avatar_href=avatar_href)
    return Response(content=svg, media_type="image/svg+xml")


@router.get("/wrapped/{username}/dashboard", response_class=HTMLResponse)
async def get_dashboard_page(
    request: Request,
    username: str,
    year: YearQuery = None,
    client: GitHubClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
) -> HTMLResponse:
    """Render the interactive dashboard page with a PNG download link."""

    view = await load_dashboard_view(username, year, client, settings)
    layout = build_layout(view)
    login = view.data.username

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "username": login,
            "year": view.data.year,
            "width": layout.width,
            "download_url": f"/wrapped/{login}/export.png?year={view.data.year}",
            "filename": export_filename(login, view.data.year),
            "svg": render_svg(layout),
        },
    )


@router.get("/wrapped/{username}/ascii", response_class=PlainTextResponse)
async def get_ascii_graph(
    username: str,
    year: YearQuery = None,
    client: GitHubClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
) -> PlainTextResponse:
    view = await load_dashboard_view(username, year, client, settings)
    return PlainTextResponse(content=view.ascii_graph + "\n")


@router.get("/wrapped/{username}/export.png")
async def export_png(
    username: str,
    year: YearQuery = None,
    client: GitHubClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
    exporter: ImageExporter = Depends(get_exporter),
) -> Response:
    """Rasterize the share layout and return it as a PNG attachment."""

    view = await load_dashboard_view(username, year, client, settings)
    if exporter.is_exporting(view.data.username):
        raise HTTPException(status_code=409, detail="export already in progress")

    result = await exporter.export_to_image(view, client)
    if result is None:
        raise HTTPException(status_code=500, detail="image export failed")

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
