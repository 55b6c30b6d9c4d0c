"""Diff utilities for comparing leaderboard snapshots."""

from __future__ import annotations

from typing import List

from .models import ChangeSet, Leaderboard, MemberUpdate, StarRegression


def diff_leaderboards(previous: Leaderboard, current: Leaderboard) -> ChangeSet:
    """Compute new members and members with new stars.

    Members that disappeared from ``current`` are ignored, and so are members
    whose star count stayed the same or went down.
    """
    new_members = []
    updated_members = []

    for member_id, member in sorted(current.members.items()):
        before = previous.members.get(member_id)
        if before is None:
            new_members.append(member)
        elif member.stars > before.stars:
            new_completions = sorted(
                key for key in member.completions if key not in before.completions
            )
            updated_members.append(
                MemberUpdate(
                    member=member,
                    previous_stars=before.stars,
                    current_stars=member.stars,
                    new_completions=new_completions,
                )
            )

    return ChangeSet(new_members=new_members, updated_members=updated_members)


def find_star_regressions(
    previous: Leaderboard,
    current: Leaderboard,
) -> List[StarRegression]:
    """Return members whose star count decreased between the two snapshots."""
    return [
        StarRegression(
            member_id=member_id,
            previous_stars=previous.members[member_id].stars,
            current_stars=member.stars,
        )
        for member_id, member in sorted(current.members.items())
        if member_id in previous.members
        and member.stars < previous.members[member_id].stars
    ]
