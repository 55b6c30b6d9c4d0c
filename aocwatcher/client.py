"""HTTP client for the Advent of Code private leaderboard API."""

from __future__ import annotations

import logging

import requests

from .errors import (
    AuthExpiredError,
    LeaderboardNotFoundError,
    MalformedResponseError,
    TransientFetchError,
)
from .models import Leaderboard, LeaderboardCredentials

logger = logging.getLogger(__name__)

AOC_BASE = "https://adventofcode.com"
DEFAULT_TIMEOUT = 20
USER_AGENT = "AoCWatcher/1.0 (python-requests)"
NO_ACCESS_STATUSES = {400, 401, 403}


class LeaderboardClient:
    """Lightweight wrapper around the AoC leaderboard JSON endpoint."""

    def __init__(self,
                 base_url: str = AOC_BASE,
                 session: requests.Session | None = None,
                 timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def leaderboard_url(self, year: int, leaderboard_id: int,
                        credentials: LeaderboardCredentials) -> str:
        return (f"{self.base_url}/{year}/leaderboard/private/view/"
                f"{leaderboard_id}.json{credentials.view_key_url_suffix}")

    def fetch(self, year: int, leaderboard_id: int,
              credentials: LeaderboardCredentials) -> Leaderboard:
        url = self.leaderboard_url(year, leaderboard_id, credentials)
        headers = {}
        cookie = credentials.session_cookie_header
        if cookie:
            headers["Cookie"] = cookie

        logger.debug("Fetching leaderboard %d for year %d", leaderboard_id, year)
        try:
            # AoC redirects to the home page when the session has no access.
            response = self.session.get(
                url,
                headers=headers,
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            # The request URL may carry the view key; keep it out of the message.
            raise TransientFetchError(
                f"Could not reach {self.base_url} for leaderboard {leaderboard_id} "
                f"(year {year}): {type(exc).__name__}") from exc

        if response.is_redirect or response.status_code in NO_ACCESS_STATUSES:
            raise AuthExpiredError(
                f"Credentials have no access to leaderboard {leaderboard_id} "
                f"for year {year} (HTTP {response.status_code})")
        if response.status_code == 404:
            raise LeaderboardNotFoundError(
                f"Leaderboard {leaderboard_id} not found for year {year}")
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise TransientFetchError(
                f"Leaderboard {leaderboard_id} for year {year} returned "
                f"HTTP {response.status_code}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Leaderboard response is not valid JSON: {exc}") from exc
        try:
            leaderboard = Leaderboard.from_payload(payload)
        except ValueError as exc:
            raise MalformedResponseError(str(exc)) from exc

        logger.info(
            "Fetched leaderboard %d (year %d) with %d members",
            leaderboard_id,
            year,
            len(leaderboard.members),
        )
        return leaderboard


def fetch_leaderboard(year: int, leaderboard_id: int,
                      credentials: LeaderboardCredentials) -> Leaderboard:
    """Fetch the current state of a private leaderboard from adventofcode.com."""
    return LeaderboardClient().fetch(year, leaderboard_id, credentials)
