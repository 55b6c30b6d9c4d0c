import pytest

import monitor_aoc
from aocwatcher.db import Database
from aocwatcher.errors import StorageError, TransientFetchError
from aocwatcher.models import Leaderboard, Member


@pytest.fixture
def env(tmp_path, monkeypatch):
    db_path = tmp_path / "monitor.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("AOC_LEADERBOARD_ID", "12345")
    monkeypatch.setenv("AOC_YEAR", "2024")
    monkeypatch.setenv("AOC_SESSION_COOKIE", "cookie")
    monkeypatch.delenv("AOC_VIEW_KEY", raising=False)
    for name in ("SLACK_WEBHOOK_URL", "SLACK_CHANNEL", "DISCORD_WEBHOOK_URL"):
        monkeypatch.delenv(name, raising=False)
    return Database(path=db_path)


def install_fetcher(monkeypatch, *snapshots):
    remaining = list(snapshots)
    calls = []

    def fake_fetch(year, leaderboard_id, credentials):
        calls.append((year, leaderboard_id))
        result = remaining.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr("aocwatcher.runner.fetch_leaderboard", fake_fetch)
    return calls


def make_leaderboard(stars: int) -> Leaderboard:
    return Leaderboard(
        year=2024,
        owner_id=1,
        members={1: Member(id=1, name="Elf", stars=stars)},
    )


def test_init_creates_database(env):
    assert monitor_aoc.main(["--init"]) == 0
    assert env.path.exists()


def test_no_action_prints_help(env):
    assert monitor_aoc.main([]) == 1


def test_missing_configuration_exits_with_2(env, monkeypatch):
    monkeypatch.delenv("AOC_SESSION_COOKIE")
    assert monitor_aoc.main(["--run"]) == 2


def test_runs_are_recorded_and_changes_printed(env, monkeypatch, capsys):
    install_fetcher(monkeypatch, make_leaderboard(1), make_leaderboard(3))

    assert monitor_aoc.main(["--run"]) == 0
    assert monitor_aoc.main(["--run"]) == 0

    statuses = [status for _, status, _ in env.recent_runs()]
    assert statuses == ["success", "first_run"]
    assert "Elf 🎉" in capsys.readouterr().out
    assert env.load_previous(12345, 2024) == make_leaderboard(3)


def test_cli_overrides_leaderboard_and_year(env, monkeypatch):
    calls = install_fetcher(monkeypatch, make_leaderboard(1))

    assert monitor_aoc.main(["--run", "--leaderboard-id", "999", "--year", "2022"]) == 0
    assert calls == [(2022, 999)]


def test_fetch_failure_exits_with_1(env, monkeypatch, capsys):
    install_fetcher(monkeypatch, TransientFetchError("offline"))

    assert monitor_aoc.main(["--run"]) == 1
    runs = list(env.recent_runs())
    assert runs[0][1] == "error"
    assert "offline" in runs[0][2]
    assert "offline" in capsys.readouterr().err


def test_export_after_run(env, monkeypatch, tmp_path):
    install_fetcher(monkeypatch, make_leaderboard(2))
    export_path = tmp_path / "exports" / "members.xlsx"

    assert monitor_aoc.main(["--run", "--export", str(export_path)]) == 0
    assert export_path.exists()


def test_run_history_failure_exits_with_1(env, monkeypatch, caplog):
    install_fetcher(monkeypatch, make_leaderboard(1))

    def locked(self, **kwargs):
        raise StorageError("database is locked")

    monkeypatch.setattr(Database, "add_run", locked)

    with caplog.at_level("ERROR"):
        assert monitor_aoc.main(["--run"]) == 1
    assert "Failed to record run" in caplog.text
    assert env.load_previous(12345, 2024) == make_leaderboard(1)
