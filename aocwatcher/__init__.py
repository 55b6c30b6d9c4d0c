"""AoCWatcher package initialization."""

from .client import LeaderboardClient, fetch_leaderboard
from .config import StaticConfig, get_env_config
from .db import Database, MemoryStorage
from .diff import diff_leaderboards, find_star_regressions
from .errors import (
    AuthExpiredError,
    ConfigError,
    CorruptedRecordError,
    FetchError,
    LeaderboardNotFoundError,
    MalformedResponseError,
    ReportError,
    StorageError,
    TransientFetchError,
    WatcherError,
)
from .models import (
    ChangeSet,
    Leaderboard,
    LeaderboardCredentials,
    Member,
    MemberUpdate,
    PuzzleCompletion,
    RunSummary,
    StarRegression,
)
from .runner import LeaderbotRunner, run_bot

__all__ = [
    "AuthExpiredError",
    "ChangeSet",
    "ConfigError",
    "CorruptedRecordError",
    "Database",
    "FetchError",
    "Leaderboard",
    "LeaderboardClient",
    "LeaderboardCredentials",
    "LeaderboardNotFoundError",
    "LeaderbotRunner",
    "MalformedResponseError",
    "Member",
    "MemberUpdate",
    "MemoryStorage",
    "PuzzleCompletion",
    "ReportError",
    "RunSummary",
    "StarRegression",
    "StaticConfig",
    "StorageError",
    "TransientFetchError",
    "WatcherError",
    "diff_leaderboards",
    "fetch_leaderboard",
    "find_star_regressions",
    "get_env_config",
    "run_bot",
]
