from fastapi import Depends
from fastapi import Request

from gitwrapped.github_api import GitHubClient
from gitwrapped.services.export import ImageExporter
from gitwrapped.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_github_client(settings: Settings = Depends(get_settings)) -> GitHubClient:
    return GitHubClient.from_settings(settings)


def get_exporter(request: Request) -> ImageExporter:
    return request.app.state.exporter
