import io

from fastapi.testclient import TestClient
from PIL import Image

from gitwrapped.api.routes.wrapped import templates
from gitwrapped.main import app
from gitwrapped.settings import Settings


client = TestClient(app)


def test_read_root_returns_hello_world() -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Hello World"}


def test_health_live_returns_ok() -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_settings_reads_token_and_year_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
    monkeypatch.setenv("WRAPPED_YEAR", "2023")

    settings = Settings()

    assert settings.github_token == "ghp_example"
    assert settings.wrapped_year == 2023
    assert settings.export_scale == 2


def test_get_wrapped_returns_aggregated_payload(api_client: TestClient, fake_github) -> None:
    response = api_client.get("/wrapped/octocat")

    assert response.status_code == 200
    payload = response.json()
    assert payload["username"] == "octocat"
    assert payload["year"] == 2024
    assert payload["total_contributions"] == 8
    assert payload["contribution_map"] == {
        "2024-01-01": 3,
        "2024-01-02": 0,
        "2024-01-03": 5,
    }
    assert payload["stats"] == {
        "total_contributions": 8,
        "average_daily": 2.7,
        "active_days": 2,
        "max_daily": 5,
    }
    assert [point["cumulative"] for point in payload["cumulative"]] == [3, 3, 8]
    assert payload["top_languages"][0] == {"name": "Python", "size": 100}
    assert payload["top_languages_by_repo_count"] == [
        {"name": "Go", "repos": 2},
        {"name": "Rust", "repos": 1},
    ]
    assert payload["profile"]["name"] == "The Octocat"
    contribution_query = [v for v in fake_github.graphql_variables() if "from" in v]
    assert contribution_query[0]["from"] == "2024-01-01T00:00:00Z"


def test_get_wrapped_uses_requested_year(api_client: TestClient, fake_github) -> None:
    response = api_client.get("/wrapped/octocat?year=2022")

    assert response.status_code == 200
    assert response.json()["year"] == 2022
    contribution_query = [v for v in fake_github.graphql_variables() if "from" in v]
    assert contribution_query[0]["to"] == "2022-12-31T23:59:59Z"


def test_get_wrapped_returns_404_for_unknown_user(api_client: TestClient, fake_github) -> None:
    fake_github.user_missing = True

    response = api_client.get("/wrapped/ghost")

    assert response.status_code == 404
    assert response.json() == {"detail": "GitHub user not found"}


def test_get_wrapped_returns_502_on_upstream_failure(
    api_client: TestClient, fake_github
) -> None:
    fake_github.graphql_status = 401

    response = api_client.get("/wrapped/octocat")

    assert response.status_code == 502
    assert "Bad credentials" in response.json()["detail"]


def test_get_wrapped_rejects_blank_username(api_client: TestClient) -> None:
    response = api_client.get("/wrapped/%20%20")

    assert response.status_code == 400
    assert response.json() == {"detail": "username cannot be empty"}


def test_dashboard_page_embeds_svg_and_download_link(api_client: TestClient) -> None:
    response = api_client.get("/wrapped/octocat/dashboard")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<svg" in response.text
    assert 'href="/wrapped/octocat/export.png?year=2024"' in response.text
    assert 'download="octocat-github-wrapped-2024.png"' in response.text


def test_dashboard_svg_route(api_client: TestClient) -> None:
    response = api_client.get("/wrapped/octocat/dashboard.svg")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/svg+xml"
    assert "Cumulative Growth" in response.text
    assert "data:image/png;base64," in response.text


def test_dashboard_svg_keeps_remote_avatar_when_fetch_fails(
    api_client: TestClient, fake_github
) -> None:
    fake_github.avatar = b"broken"

    response = api_client.get("/wrapped/octocat/dashboard.svg")

    assert response.status_code == 200
    assert "https://avatars.github.test/u/583231" in response.text


def test_dashboard_svg_keeps_remote_avatar_when_avatar_is_oversized(
    api_client: TestClient, fake_github, monkeypatch
) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    buffer = io.BytesIO()
    Image.new("RGB", (400, 400), "blue").save(buffer, format="PNG")
    fake_github.avatar = buffer.getvalue()

    response = api_client.get("/wrapped/octocat/dashboard.svg")

    assert response.status_code == 200
    assert "data:image/png;base64," not in response.text
    assert "https://avatars.github.test/u/583231" in response.text


def test_dashboard_template_escapes_text_but_not_svg() -> None:
    page = templates.get_template("dashboard.html").render(
        username="<script>alert(1)</script>",
        year=2024,
        width=1152,
        download_url="/wrapped/x/export.png?year=2024&v=1",
        filename="x-github-wrapped-2024.png",
        svg="<svg></svg>",
    )

    assert "<script>" not in page
    assert "&lt;script&gt;" in page
    assert "year=2024&amp;v=1" in page
    assert "<svg></svg>" in page


def test_ascii_route_returns_plain_text(api_client: TestClient) -> None:
    response = api_client.get("/wrapped/octocat/ascii")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "2024-01-01 .. 2024-01-03" in response.text


def test_export_png_returns_attachment(api_client: TestClient) -> None:
    response = api_client.get("/wrapped/octocat/export.png")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.headers["content-disposition"] == (
        'attachment; filename="octocat-github-wrapped-2024.png"'
    )
    with Image.open(io.BytesIO(response.content)) as image:
        assert image.width == 720 * 2


def test_export_png_returns_409_while_export_in_progress(
    api_client: TestClient, monkeypatch
) -> None:
    exporter = api_client.app.state.exporter
    monkeypatch.setattr(exporter, "is_exporting", lambda username: True)

    response = api_client.get("/wrapped/octocat/export.png")

    assert response.status_code == 409
    assert response.json() == {"detail": "export already in progress"}


def test_export_png_returns_500_when_export_fails(
    api_client: TestClient, fake_github
) -> None:
    fake_github.avatar = b"broken"

    response = api_client.get("/wrapped/octocat/export.png")

    assert response.status_code == 500
    assert response.json() == {"detail": "image export failed"}
    assert not api_client.app.state.exporter.is_exporting("octocat")
