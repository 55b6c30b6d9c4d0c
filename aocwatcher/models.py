"""Core data models for AoCWatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from .errors import WatcherError

PuzzleKey = Tuple[int, int]


@dataclass(frozen=True)
class PuzzleCompletion:
    """When a member earned the star for one part of one day."""

    get_star_ts: int
    star_index: int = 0


@dataclass(frozen=True)
class Member:
    """Represents a participant of a private leaderboard."""

    id: int
    name: Optional[str] = None
    stars: int = 0
    local_score: int = 0
    global_score: int = 0
    last_star_ts: int = 0
    completions: Dict[PuzzleKey, PuzzleCompletion] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or f"(anonymous user #{self.id})"

    def completed_puzzles(self) -> List[PuzzleKey]:
        return sorted(self.completions)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Member":
        completions: Dict[PuzzleKey, PuzzleCompletion] = {}
        for day, parts in (payload.get("completion_day_level") or {}).items():
            for part, info in parts.items():
                key = (int(day), int(part))
                if key[1] not in (1, 2):
                    raise ValueError(f"Invalid puzzle part {part!r} for day {day}")
                completions[key] = PuzzleCompletion(
                    get_star_ts=int(info["get_star_ts"]),
                    star_index=int(info.get("star_index") or 0),
                )

        stars = int(payload.get("stars") or 0)
        if stars < 0:
            raise ValueError(f"Negative star count {stars} for member {payload['id']}")

        return cls(
            id=int(payload["id"]),
            name=payload.get("name"),
            stars=stars,
            local_score=int(payload.get("local_score") or 0),
            global_score=int(payload.get("global_score") or 0),
            last_star_ts=int(payload.get("last_star_ts") or 0),
            completions=completions,
        )

    def to_payload(self) -> Dict[str, Any]:
        days: Dict[str, Dict[str, Dict[str, int]]] = {}
        for (day, part), info in sorted(self.completions.items()):
            days.setdefault(str(day), {})[str(part)] = {
                "get_star_ts": info.get_star_ts,
                "star_index": info.star_index,
            }
        return {
            "id": self.id,
            "name": self.name,
            "stars": self.stars,
            "local_score": self.local_score,
            "global_score": self.global_score,
            "last_star_ts": self.last_star_ts,
            "completion_day_level": days,
        }


@dataclass(frozen=True)
class Leaderboard:
    """Point-in-time snapshot of a private Advent of Code leaderboard."""

    year: int
    owner_id: int
    day1_ts: int = 0
    members: Dict[int, Member] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Leaderboard":
        """Parse the JSON document served by the AoC private leaderboard API.

        Raises ``ValueError`` when the payload does not have the expected shape.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"Unexpected leaderboard payload: {payload!r}")
        try:
            members = {}
            for raw_id, raw_member in (payload.get("members") or {}).items():
                member = Member.from_payload(raw_member)
                if member.id != int(raw_id):
                    raise ValueError(
                        f"Member key {raw_id} does not match member id {member.id}"
                    )
                members[member.id] = member
            return cls(
                year=int(payload["event"]),
                owner_id=int(payload["owner_id"]),
                day1_ts=int(payload.get("day1_ts") or 0),
                members=members,
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed leaderboard payload: {exc!r}") from exc

    def to_payload(self) -> Dict[str, Any]:
        return {
            "event": str(self.year),
            "owner_id": self.owner_id,
            "day1_ts": self.day1_ts,
            "members": {
                str(member_id): member.to_payload()
                for member_id, member in sorted(self.members.items())
            },
        }


@dataclass(frozen=True)
class MemberUpdate:
    """A member whose star count went up since the previous snapshot."""

    member: Member
    previous_stars: int
    current_stars: int
    new_completions: List[PuzzleKey]


@dataclass
class ChangeSet:
    """Holds the result of comparing two leaderboard snapshots."""

    new_members: List[Member] = field(default_factory=list)
    updated_members: List[MemberUpdate] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.new_members and not self.updated_members

    @property
    def new_member_ids(self) -> set[int]:
        return {member.id for member in self.new_members}

    @property
    def updated_member_ids(self) -> set[int]:
        return {update.member.id for update in self.updated_members}


@dataclass(frozen=True)
class StarRegression:
    """A member whose star count went down, which AoC should never do."""

    member_id: int
    previous_stars: int
    current_stars: int


@dataclass(frozen=True, repr=False)
class LeaderboardCredentials:
    """Secret used to access a private leaderboard.

    Either a leaderboard view key or an AoC session cookie.
    """

    kind: str
    value: str

    VIEW_KEY = "view_key"
    SESSION_COOKIE = "session_cookie"

    @classmethod
    def view_key(cls, key: str) -> "LeaderboardCredentials":
        return cls(kind=cls.VIEW_KEY, value=key)

    @classmethod
    def session_cookie(cls, cookie: str) -> "LeaderboardCredentials":
        return cls(kind=cls.SESSION_COOKIE, value=cookie)

    def __post_init__(self) -> None:
        if self.kind not in (self.VIEW_KEY, self.SESSION_COOKIE):
            raise ValueError(f"Unknown credentials kind: {self.kind!r}")

    def __repr__(self) -> str:
        return f"LeaderboardCredentials(kind={self.kind!r}, value=<redacted>)"

    @property
    def view_key_url_suffix(self) -> str:
        return f"?view_key={self.value}" if self.kind == self.VIEW_KEY else ""

    @property
    def session_cookie_header(self) -> Optional[str]:
        return f"session={self.value}" if self.kind == self.SESSION_COOKIE else None


@dataclass
class RunSummary:
    """Aggregated result returned by a monitoring cycle."""

    executed_at: str
    leaderboard_id: int
    year: int
    status: str
    changes: Optional[ChangeSet] = None
    errors: List["WatcherError"] = field(default_factory=list)
    saved: bool = False
    reported: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error(self) -> Optional["WatcherError"]:
        return self.errors[0] if self.errors else None
