from fastapi import FastAPI

from gitwrapped.api.routes.wrapped import router
from gitwrapped.core.middleware import ExportRateLimitMiddleware
from gitwrapped.core.observability import configure_logging
from gitwrapped.core.observability import init_sentry
from gitwrapped.services.export import ImageExporter
from gitwrapped.settings import Settings


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application from settings."""

    app_settings = settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    app = FastAPI(title="GitHub Wrapped")
    app.state.settings = app_settings
    app.state.exporter = ImageExporter(
        scale=app_settings.export_scale,
        background=app_settings.export_background,
        site_label=app_settings.share_site_label,
    )
    app.add_middleware(
        ExportRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.include_router(router)
    return app


app = create_app()
