import pytest

from entity360.core.config import AIServiceSettings, DatabaseSettings, GraphSettings, Settings


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@db:5432/app", "postgresql+asyncpg://u:p@db:5432/app"),
        ("postgresql://u:p@db:5432/app", "postgresql+asyncpg://u:p@db:5432/app"),
        ("postgresql+asyncpg://u:p@db:5432/app", "postgresql+asyncpg://u:p@db:5432/app"),
    ],
)
def test_connection_url_uses_asyncpg(url, expected):
    assert DatabaseSettings(DATABASE_URL=url).connection_url == expected


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("AI_SERVICE_TIMEOUT", "30")
    monkeypatch.setenv("RANKING_TOP_K", "50")

    settings = Settings()

    assert settings.ai.timeout == 30
    assert settings.graph.ranking_top_k == 50


def test_graph_defaults():
    graph = GraphSettings()

    assert graph.low_color == "#000064"
    assert graph.high_color == "#ff2828"
    assert graph.default_color == "#ffffff"
    assert graph.ranking_top_k == -1


def test_retries_at_least_one():
    assert AIServiceSettings(AI_SERVICE_MAX_RETRIES=-3).max_retries == 1
