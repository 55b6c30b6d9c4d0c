import pytest

from aocwatcher.config import StaticConfig, current_year, get_env_config
from aocwatcher.errors import ConfigError
from aocwatcher.models import LeaderboardCredentials

ENV_VARS = ["AOC_LEADERBOARD_ID", "AOC_YEAR", "AOC_VIEW_KEY", "AOC_SESSION_COOKIE"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_static_config_defaults_to_current_year():
    config = StaticConfig(leaderboard_id=1, credentials=LeaderboardCredentials.view_key("k"))

    assert config.year == current_year()


def test_env_config_with_view_key(monkeypatch):
    monkeypatch.setenv("AOC_LEADERBOARD_ID", "12345")
    monkeypatch.setenv("AOC_YEAR", "2023")
    monkeypatch.setenv("AOC_VIEW_KEY", "key")
    monkeypatch.setenv("AOC_SESSION_COOKIE", "cookie")

    config = get_env_config()

    assert config.leaderboard_id == 12345
    assert config.year == 2023
    assert config.credentials == LeaderboardCredentials.view_key("key")


def test_env_config_falls_back_to_session_cookie(monkeypatch):
    monkeypatch.setenv("AOC_LEADERBOARD_ID", "12345")
    monkeypatch.setenv("AOC_SESSION_COOKIE", "cookie")

    config = get_env_config()

    assert config.credentials == LeaderboardCredentials.session_cookie("cookie")
    assert config.year == current_year()


def test_env_config_custom_prefix_and_explicit_id(monkeypatch):
    monkeypatch.setenv("BOT_VIEW_KEY", "key")

    config = get_env_config(prefix="BOT_", leaderboard_id=42)

    assert config.leaderboard_id == 42


@pytest.mark.parametrize(
    "env, message",
    [
        ({"AOC_VIEW_KEY": "key"}, "AOC_LEADERBOARD_ID"),
        ({"AOC_LEADERBOARD_ID": "forty-two", "AOC_VIEW_KEY": "key"}, "forty-two"),
        ({"AOC_LEADERBOARD_ID": "1", "AOC_YEAR": "soon", "AOC_VIEW_KEY": "key"}, "AOC_YEAR"),
        ({"AOC_LEADERBOARD_ID": "1"}, "AOC_SESSION_COOKIE"),
    ],
)
def test_env_config_errors(monkeypatch, env, message):
    for name, value in env.items():
        monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError, match=message):
        get_env_config()
