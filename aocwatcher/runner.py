"""Core execution workflow for AoCWatcher."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Type

from .client import fetch_leaderboard
from .config import LeaderbotConfig
from .db import LeaderboardStorage
from .diff import diff_leaderboards, find_star_regressions
from .errors import ConfigError, FetchError, ReportError, StorageError, WatcherError
from .models import ChangeSet, Leaderboard, LeaderboardCredentials, RunSummary
from .notifications import LeaderbotReporter

logger = logging.getLogger(__name__)

Fetcher = Callable[[int, int, LeaderboardCredentials], Leaderboard]


def _as_watcher_error(exc: Exception,
                      error_type: Type[WatcherError]) -> WatcherError:
    if isinstance(exc, WatcherError):
        return exc
    wrapped = error_type(f"{type(exc).__name__}: {exc}")
    wrapped.__cause__ = exc
    return wrapped


@dataclass
class LeaderbotRunner:
    """Coordinates fetch, diff, report and persistence steps.

    ``save_on_report_failure`` decides whether a failed change report still
    advances the stored baseline. It defaults to True so the next run can keep
    detecting changes; set it to False to retry the same notification next run.
    """

    config: LeaderbotConfig
    storage: LeaderboardStorage
    reporter: LeaderbotReporter
    fetcher: Fetcher = field(default_factory=lambda: fetch_leaderboard)
    save_on_report_failure: bool = True

    def run(self, dry_run: bool = False) -> RunSummary:
        """Execute a single monitoring cycle."""
        summary = RunSummary(
            executed_at=dt.datetime.now(dt.timezone.utc).isoformat(),
            leaderboard_id=0,
            year=0,
            status="success",
        )
        try:
            year = self.config.year
            leaderboard_id = self.config.leaderboard_id
            credentials = self.config.credentials
        except Exception as exc:  # noqa: BLE001
            # Id and year stay 0 when the config cannot provide them.
            return self._fail(summary, _as_watcher_error(exc, ConfigError))
        summary.leaderboard_id = leaderboard_id
        summary.year = year
        logger.info("Starting monitor cycle for leaderboard %d (year %d)",
                    leaderboard_id, year)

        try:
            current = self.fetcher(year, leaderboard_id, credentials)
        except Exception as exc:  # noqa: BLE001
            return self._fail(summary, _as_watcher_error(exc, FetchError))

        try:
            previous = self.storage.load_previous(leaderboard_id, year)
        except Exception as exc:  # noqa: BLE001
            return self._fail(summary, _as_watcher_error(exc, StorageError))

        if previous is None:
            logger.info(
                "No previous snapshot for leaderboard %d (year %d); storing baseline",
                leaderboard_id,
                year,
            )
            summary.status = "dry_run" if dry_run else "first_run"
            if dry_run:
                return summary
            return self._save(summary, current)

        changes = self._diff(previous, current)
        summary.changes = changes

        if dry_run:
            logger.info("Dry run; skipping report and save")
            summary.status = "dry_run"
            return summary

        if changes.is_empty:
            logger.info("No leaderboard changes detected")
        else:
            try:
                self.reporter.report_changes(year, leaderboard_id, previous,
                                             current, changes)
                summary.reported = True
            except Exception as exc:  # noqa: BLE001
                error = _as_watcher_error(exc, ReportError)
                self._fail(summary, error)
                if not self.save_on_report_failure:
                    logger.warning(
                        "Keeping previous snapshot so the changes are reported next run"
                    )
                    return summary

        return self._save(summary, current)

    def _diff(self, previous: Leaderboard, current: Leaderboard) -> ChangeSet:
        for regression in find_star_regressions(previous, current):
            logger.warning(
                "Member %d went from %d to %d stars; ignoring",
                regression.member_id,
                regression.previous_stars,
                regression.current_stars,
            )
        changes = diff_leaderboards(previous, current)
        logger.info(
            "Detected %d new member(s) and %d member(s) with new stars",
            len(changes.new_members),
            len(changes.updated_members),
        )
        return changes

    def _save(self, summary: RunSummary, current: Leaderboard) -> RunSummary:
        try:
            self.storage.save(summary.leaderboard_id, summary.year, current)
        except Exception as exc:  # noqa: BLE001
            return self._fail(summary, _as_watcher_error(exc, StorageError))
        summary.saved = True
        logger.info("Saved snapshot for leaderboard %d (year %d)",
                    summary.leaderboard_id, summary.year)
        return summary

    def _fail(self, summary: RunSummary, error: WatcherError) -> RunSummary:
        logger.error("Monitor cycle failed: %s", error, exc_info=error)
        summary.status = "error"
        summary.errors.append(error)
        try:
            self.reporter.report_error(summary.year, summary.leaderboard_id, error)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to report error for leaderboard %d",
                             summary.leaderboard_id)
        return summary


def run_bot(
    config: LeaderbotConfig,
    storage: LeaderboardStorage,
    reporter: LeaderbotReporter,
    fetcher: Optional[Fetcher] = None,
) -> RunSummary:
    """Run one monitoring cycle with the default policies."""
    runner = LeaderbotRunner(
        config=config,
        storage=storage,
        reporter=reporter,
        fetcher=fetcher or fetch_leaderboard,
    )
    return runner.run()
