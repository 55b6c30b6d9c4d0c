"""Configuration describing which leaderboard to monitor."""

from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass, field
from typing import Protocol

from .errors import ConfigError
from .models import LeaderboardCredentials

DEFAULT_ENV_PREFIX = "AOC_"


def current_year() -> int:
    return dt.date.today().year


class LeaderbotConfig(Protocol):
    """Protocol defining the parameters needed to monitor a leaderboard."""

    @property
    def year(self) -> int:
        ...

    @property
    def leaderboard_id(self) -> int:
        ...

    @property
    def credentials(self) -> LeaderboardCredentials:
        ...


@dataclass(frozen=True)
class StaticConfig:
    """Config with fixed values; the year defaults to the current one."""

    leaderboard_id: int
    credentials: LeaderboardCredentials
    year: int = field(default_factory=current_year)


def _int_env_var(name: str, required: bool = True) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        if required:
            raise ConfigError(f"Environment variable {name} is not set")
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(
            f"Environment variable {name}: expected int value, found {raw!r}"
        ) from exc


def get_env_config(
    prefix: str = DEFAULT_ENV_PREFIX,
    leaderboard_id: int | None = None,
) -> StaticConfig:
    """Build a config from ``<prefix>LEADERBOARD_ID``, ``<prefix>YEAR`` and
    either ``<prefix>VIEW_KEY`` or ``<prefix>SESSION_COOKIE``.

    An explicit ``leaderboard_id`` takes precedence over the environment.
    """
    if leaderboard_id is None:
        leaderboard_id = _int_env_var(f"{prefix}LEADERBOARD_ID")
    year = _int_env_var(f"{prefix}YEAR", required=False)

    view_key = (os.getenv(f"{prefix}VIEW_KEY") or "").strip()
    session_cookie = (os.getenv(f"{prefix}SESSION_COOKIE") or "").strip()
    if view_key:
        credentials = LeaderboardCredentials.view_key(view_key)
    elif session_cookie:
        credentials = LeaderboardCredentials.session_cookie(session_cookie)
    else:
        raise ConfigError(
            f"Either {prefix}VIEW_KEY or {prefix}SESSION_COOKIE must be set")

    if year is None:
        return StaticConfig(leaderboard_id=leaderboard_id, credentials=credentials)
    return StaticConfig(leaderboard_id=leaderboard_id,
                        credentials=credentials,
                        year=year)
