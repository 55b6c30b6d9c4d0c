"""Exception types raised by AoCWatcher collaborators."""

from __future__ import annotations


class WatcherError(Exception):
    """Base class for every error a monitoring cycle can end with."""


class ConfigError(WatcherError):
    """Configuration is missing or invalid."""


class FetchError(WatcherError):
    """The current leaderboard could not be fetched."""


class AuthExpiredError(FetchError):
    """Credentials do not (or no longer) grant access to the leaderboard."""


class LeaderboardNotFoundError(FetchError):
    """The leaderboard does not exist for the requested year."""


class TransientFetchError(FetchError):
    """Network failure, timeout or server-side error; the next run may succeed."""


class MalformedResponseError(FetchError):
    """The API answered with something that is not a leaderboard."""


class StorageError(WatcherError):
    """The storage backend failed to load or save a snapshot."""


class CorruptedRecordError(StorageError):
    """A stored snapshot exists but cannot be decoded."""


class ReportError(WatcherError):
    """A notification could not be delivered."""


__all__ = [
    "AuthExpiredError",
    "ConfigError",
    "CorruptedRecordError",
    "FetchError",
    "LeaderboardNotFoundError",
    "MalformedResponseError",
    "ReportError",
    "StorageError",
    "TransientFetchError",
    "WatcherError",
]
