"""CLI entrypoint for the AoCWatcher agent."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from aocwatcher.config import get_env_config
from aocwatcher.db import Database, resolve_sqlite_path
from aocwatcher.errors import ConfigError, StorageError
from aocwatcher.models import RunSummary
from aocwatcher.notifications import ConsoleReporter, NotifierReporter, build_notifier_from_env
from aocwatcher.runner import LeaderbotRunner

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AoCWatcher leaderboard monitoring agent")
    parser.add_argument("--init", action="store_true", help="initialize storage and exit")
    parser.add_argument(
        "--run",
        action="store_true",
        help="execute one monitoring cycle",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="skip reporting and persistence while still fetching and diffing",
    )
    parser.add_argument(
        "--leaderboard-id",
        type=int,
        help="leaderboard to monitor (overrides AOC_LEADERBOARD_ID env var)",
    )
    parser.add_argument(
        "--year",
        type=int,
        help="event year to monitor (overrides AOC_YEAR env var)",
    )
    parser.add_argument(
        "--export",
        type=Path,
        help="write the stored snapshot's members to this .xlsx file after the run",
    )
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def _format_note(summary: RunSummary) -> str:
    """Render a concise run note summarizing the cycle outcome."""
    if summary.errors:
        return "; ".join(f"{type(err).__name__}: {err}" for err in summary.errors)
    if summary.changes is None:
        return "baseline stored" if summary.saved else "no previous snapshot"
    return (
        f"members(+{len(summary.changes.new_members)}) "
        f"stars(+{len(summary.changes.updated_members)})"
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    database_url = os.getenv("DATABASE_URL", "sqlite:///aoc_watcher.db")
    database = Database(path=resolve_sqlite_path(database_url))

    if args.init:
        logger.info("Initializing database at %s", database.path)
        database.initialize()
        return 0

    if not args.run:
        parser.print_help()
        return 1

    try:
        config = get_env_config(leaderboard_id=args.leaderboard_id)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    if args.year is not None:
        config = replace(config, year=args.year)

    notifier = build_notifier_from_env()
    reporter = NotifierReporter(notifier=notifier) if notifier else ConsoleReporter()

    try:
        database.initialize()
    except StorageError:
        logger.exception("Failed to prepare storage at %s", database.path)
        return 1

    runner = LeaderbotRunner(config=config, storage=database, reporter=reporter)
    summary = runner.run(dry_run=args.dry_run)

    try:
        database.add_run(
            executed_at=summary.executed_at,
            status=summary.status,
            notes=_format_note(summary),
            leaderboard_id=summary.leaderboard_id,
            year=summary.year,
        )
    except StorageError:
        logger.exception("Failed to record run at %s", summary.executed_at)
        return 1
    logger.info("Run recorded at %s (%s)", summary.executed_at, summary.status)

    if summary.changes and not summary.changes.is_empty:
        for member in summary.changes.new_members:
            logger.info("New member: %s (%d stars)", member.display_name, member.stars)
        for update in summary.changes.updated_members:
            logger.info(
                "%s | stars: %d -> %d | %s",
                update.member.display_name,
                update.previous_stars,
                update.current_stars,
                ", ".join(f"day {day} part {part}" for day, part in update.new_completions),
            )

    if args.export:
        try:
            count = database.export_members_to_xlsx(
                args.export, summary.leaderboard_id, summary.year
            )
            logger.info("Exported %d member(s) to %s", count, args.export)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to export leaderboard snapshot")

    return 0 if summary.ok else 1


if __name__ == "__main__":
    sys.exit(main())
