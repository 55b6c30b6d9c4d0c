from aocwatcher.diff import diff_leaderboards, find_star_regressions
from aocwatcher.models import Leaderboard, Member, PuzzleCompletion


def make_member(member_id: int, stars: int, puzzles=(), name=None) -> Member:
    return Member(
        id=member_id,
        name=name or f"Member {member_id}",
        stars=stars,
        local_score=stars * 10,
        completions={
            key: PuzzleCompletion(get_star_ts=1_700_000_000 + idx)
            for idx, key in enumerate(puzzles)
        },
    )


def make_leaderboard(*members: Member) -> Leaderboard:
    return Leaderboard(
        year=2024,
        owner_id=1,
        members={member.id: member for member in members},
    )


def test_diff_reports_new_members_and_new_stars():
    previous = make_leaderboard(make_member(1, 2, [(1, 1), (1, 2)]))
    current = make_leaderboard(
        make_member(1, 4, [(1, 1), (1, 2), (5, 1), (5, 2)]),
        make_member(2, 1, [(1, 1)]),
    )

    changes = diff_leaderboards(previous, current)

    assert [member.id for member in changes.new_members] == [2]
    assert changes.new_members[0].stars == 1
    assert len(changes.updated_members) == 1
    update = changes.updated_members[0]
    assert update.member.id == 1
    assert (update.previous_stars, update.current_stars) == (2, 4)
    assert update.new_completions == [(5, 1), (5, 2)]
    assert not changes.is_empty


def test_diff_of_identical_snapshots_is_empty():
    snapshot = make_leaderboard(
        make_member(1, 4, [(1, 1), (1, 2), (2, 1), (2, 2)]),
        make_member(2, 0),
    )

    assert diff_leaderboards(snapshot, snapshot).is_empty


def test_diff_ignores_departed_and_regressed_members():
    previous = make_leaderboard(
        make_member(1, 6),
        make_member(2, 3),
        make_member(3, 2),
    )
    current = make_leaderboard(
        make_member(1, 4),
        make_member(2, 3),
    )

    changes = diff_leaderboards(previous, current)

    assert changes.is_empty
    assert changes.new_members == []
    assert changes.updated_members == []


def test_member_never_in_both_categories():
    previous = make_leaderboard(make_member(1, 1))
    current = make_leaderboard(make_member(1, 3), make_member(2, 5), make_member(3, 0))

    changes = diff_leaderboards(previous, current)

    assert changes.new_member_ids == {2, 3}
    assert changes.updated_member_ids == {1}
    assert not changes.new_member_ids & changes.updated_member_ids


def test_find_star_regressions():
    previous = make_leaderboard(make_member(1, 6), make_member(2, 3))
    current = make_leaderboard(make_member(1, 4), make_member(2, 5), make_member(3, 1))

    regressions = find_star_regressions(previous, current)

    assert len(regressions) == 1
    assert regressions[0].member_id == 1
    assert (regressions[0].previous_stars, regressions[0].current_stars) == (6, 4)
