"""Notification helpers for delivering leaderboard changes to external channels."""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass
from typing import List, Optional, Protocol

import requests

from .errors import ReportError
from .models import ChangeSet, Leaderboard, Member

logger = logging.getLogger(__name__)

STARS_HEADER = "Stars ⭐"
COLUMN_WIDTH = 12
FIGURE_SPACE = "\u2007"
DEFAULT_USERNAME = "Advent of Code"
NEW_MEMBER_EMOJI = "👋"
NEW_STARS_EMOJI = "🎉"
SLACK_BOLD_LINE = re.compile(r"^\*([^*\n]+)\*$", re.MULTILINE)


class Notifier(Protocol):
    """Protocol defining the notifier contract."""

    def send(self, message: str) -> None:
        ...


class LeaderbotReporter(Protocol):
    """Protocol for announcing leaderboard changes and cycle failures."""

    def report_changes(
        self,
        year: int,
        leaderboard_id: int,
        previous: Leaderboard,
        current: Leaderboard,
        changes: ChangeSet,
    ) -> None:
        """Announce a non-empty change set. Raises ReportError on failure."""
        ...

    def report_error(self, year: int, leaderboard_id: int,
                     error: Exception) -> None:
        ...


@dataclass
class SlackNotifier:
    """Send messages to Slack via Incoming Webhook."""

    webhook_url: str
    channel: str | None = None
    username: str = DEFAULT_USERNAME
    icon_url: str | None = None
    timeout: int = 10

    def send(self, message: str) -> None:
        payload = {"text": message, "username": self.username}
        if self.channel:
            payload["channel"] = self.channel
        if self.icon_url:
            payload["icon_url"] = self.icon_url
        response = requests.post(
            self.webhook_url,
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()


@dataclass
class DiscordNotifier:
    """Send messages to a Discord channel webhook."""

    webhook_url: str
    username: str | None = None
    timeout: int = 10

    def send(self, message: str) -> None:
        payload = {"content": to_discord_markdown(message)}
        if self.username:
            payload["username"] = self.username
        response = requests.post(
            self.webhook_url,
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()


@dataclass
class CompositeNotifier:
    """Fan-out notifier that forwards messages to multiple channels.

    Every channel is attempted; a ReportError is raised afterwards if any of
    them failed.
    """

    notifiers: List[Notifier]

    def send(self, message: str) -> None:
        failed = []
        for notifier in self.notifiers:
            try:
                notifier.send(message)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to deliver notification via %s", type(notifier).__name__)
                failed.append(type(notifier).__name__)
        if failed:
            raise ReportError(f"Notification failed for: {', '.join(failed)}")


def to_discord_markdown(message: str) -> str:
    """Turn Slack-style single-asterisk bold lines into Discord bold."""
    return SLACK_BOLD_LINE.sub(r"**\1**", message)


def build_notifier_from_env() -> CompositeNotifier | None:
    """Construct a notifier from environment configuration."""
    notifiers: list[Notifier] = []

    slack_webhook = (os.getenv("SLACK_WEBHOOK_URL") or "").strip()
    if slack_webhook:
        slack_channel = (os.getenv("SLACK_CHANNEL") or "").strip() or None
        notifiers.append(SlackNotifier(webhook_url=slack_webhook, channel=slack_channel))

    discord_webhook = (os.getenv("DISCORD_WEBHOOK_URL") or "").strip()
    if discord_webhook:
        notifiers.append(DiscordNotifier(webhook_url=discord_webhook))

    if not notifiers:
        return None
    return CompositeNotifier(notifiers=notifiers)


def format_changes(
    year: int,
    leaderboard_id: int,
    leaderboard: Leaderboard,
    changes: Optional[ChangeSet] = None,
) -> str:
    """Render the leaderboard as text, highlighting changed members."""
    members = sorted(
        leaderboard.members.values(),
        key=lambda m: (-m.stars, -m.local_score, m.last_star_ts, m.id),
    )
    header = f"{_right_pad(STARS_HEADER)}Leaderboard {leaderboard_id} (year {year})"
    rows = [_member_row(member, changes) for member in members]
    return "\n".join([header, *rows])


def format_error(year: int, leaderboard_id: int, error: Exception) -> str:
    return f"An error occurred for leaderboard {leaderboard_id} and year {year}: {error}"


def _member_row(member: Member, changes: Optional[ChangeSet]) -> str:
    row = f"{_right_pad(str(member.stars))}{member.display_name}"
    if changes is None:
        return row
    if member.id in changes.new_member_ids:
        return f"*{row} {NEW_MEMBER_EMOJI}*"
    if member.id in changes.updated_member_ids:
        return f"*{row} {NEW_STARS_EMOJI}*"
    return row


def _right_pad(text: str, width: int = COLUMN_WIDTH) -> str:
    return text + FIGURE_SPACE * max(width - len(text), 0)


@dataclass
class NotifierReporter:
    """Reporter that renders messages and sends them through a Notifier."""

    notifier: Notifier

    def report_changes(
        self,
        year: int,
        leaderboard_id: int,
        previous: Leaderboard,
        current: Leaderboard,
        changes: ChangeSet,
    ) -> None:
        self._send(format_changes(year, leaderboard_id, current, changes))

    def report_error(self, year: int, leaderboard_id: int,
                     error: Exception) -> None:
        self._send(format_error(year, leaderboard_id, error))

    def _send(self, message: str) -> None:
        try:
            self.notifier.send(message)
        except ReportError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ReportError(
                f"Failed to deliver notification via {type(self.notifier).__name__}: {exc}"
            ) from exc


class ConsoleReporter:
    """Reporter that prints to the terminal; used when no channel is configured."""

    def report_changes(
        self,
        year: int,
        leaderboard_id: int,
        previous: Leaderboard,
        current: Leaderboard,
        changes: ChangeSet,
    ) -> None:
        print(format_changes(year, leaderboard_id, current, changes))

    def report_error(self, year: int, leaderboard_id: int,
                     error: Exception) -> None:
        print(format_error(year, leaderboard_id, error), file=sys.stderr)


__all__ = [
    "CompositeNotifier",
    "ConsoleReporter",
    "DiscordNotifier",
    "LeaderbotReporter",
    "Notifier",
    "NotifierReporter",
    "SlackNotifier",
    "build_notifier_from_env",
    "format_changes",
    "format_error",
    "to_discord_markdown",
]
