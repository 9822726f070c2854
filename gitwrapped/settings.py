from datetime import date

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    """

    github_token: str = ""
    github_graphql_url: str = "https://api.github.com/graphql"
    github_api_base_url: str = "https://api.github.com"
    github_timeout_seconds: float = 20.0
    wrapped_year: int = Field(default_factory=lambda: date.today().year)
    export_scale: int = 2
    export_background: str = "#ffffff"
    share_site_label: str = "git-wrapped24.vercel.app"
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
