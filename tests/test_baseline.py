"""Tests for building the ladder a round is replayed against."""

from __future__ import annotations

from domain.baseline import (
    MemberPosition,
    PositionHint,
    baseline_from_hints,
    fallback_baseline,
    invert_positions,
    positions_from_members,
    unique_snapshot_rows,
)

MEMBERS = [
    MemberPosition(user_id=1, position=1),
    MemberPosition(user_id=2, position=2),
    MemberPosition(user_id=3, position=3),
    MemberPosition(user_id=4, position=4),
]


def test_hints_place_hinted_members_first() -> None:
    hints = [PositionHint(challenger_id=4, challenged_id=1, challenger_position=2, challenged_position=1)]
    assert baseline_from_hints(MEMBERS, hints) == {1: 1, 2: 4, 3: 2, 4: 3}


def test_hint_ties_fall_back_to_membership_position() -> None:
    hints = [
        PositionHint(challenger_id=3, challenged_id=2, challenger_position=2, challenged_position=2),
    ]
    assert baseline_from_hints(MEMBERS, hints) == {1: 2, 2: 3, 3: 1, 4: 4}


def test_best_hint_per_member_wins() -> None:
    hints = [
        PositionHint(challenger_id=4, challenged_id=3, challenger_position=4, challenged_position=3),
        PositionHint(challenger_id=4, challenged_id=1, challenger_position=1, challenged_position=None),
    ]
    assert baseline_from_hints(MEMBERS, hints) == {1: 4, 2: 3, 3: 1, 4: 2}


def test_no_usable_hints_returns_empty() -> None:
    hints = [PositionHint(challenger_id=4, challenged_id=1, challenger_position=None, challenged_position=0)]
    assert baseline_from_hints(MEMBERS, hints) == {}


def test_positions_from_members_densifies_and_puts_unpositioned_last() -> None:
    members = [
        MemberPosition(user_id=7, position=None),
        MemberPosition(user_id=5, position=8),
        MemberPosition(user_id=6, position=3),
        MemberPosition(user_id=4, position=3),
    ]
    assert positions_from_members(members) == {1: 4, 2: 6, 3: 5, 4: 7}


def test_fallback_keeps_given_order() -> None:
    members = [MemberPosition(user_id=9, position=None), MemberPosition(user_id=3, position=1)]
    assert fallback_baseline(members) == {1: 9, 2: 3}


def test_snapshot_rows_keep_best_position_per_user() -> None:
    assert unique_snapshot_rows({1: 10, 2: 20, 3: 10, 4: 0, 0: 30}) == {10: 1, 20: 2}


def test_invert_positions() -> None:
    assert invert_positions({1: 10, 2: 20}) == {10: 1, 20: 2}
