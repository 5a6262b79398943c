"""Tests for blue-point eligibility and lock flags."""

from __future__ import annotations

from domain.blue_points import compute_blue_point_flags
from domain.common import MemberState
from domain.config import BluePointPolicy, RankingRules

RULES = RankingRules(
    slug=None,
    max_positions_up=10,
    access_threshold=3,
    blue_point_policy=BluePointPolicy(),
)


def _members(count: int) -> list[MemberState]:
    return [MemberState(user_id=position, position=position) for position in range(1, count + 1)]


def _positions(members: list[MemberState]) -> dict[int, int]:
    return {member.user_id: member.position or 0 for member in members}


def test_leader_is_never_flagged() -> None:
    members = _members(3)
    flags = compute_blue_point_flags(
        members, _positions(members), challenged_streak={1}, has_challenge={2, 3}, rules=RULES
    )
    assert flags[1] == (False, False)


def test_challenged_every_recent_month_earns_blue_point() -> None:
    members = _members(3)
    flags = compute_blue_point_flags(
        members, _positions(members), challenged_streak={3}, has_challenge={1, 2, 3}, rules=RULES
    )
    assert flags[3] == (True, False)
    assert flags[2] == (False, False)


def test_player_without_free_targets_is_locked_and_earns_blue_point() -> None:
    members = _members(3)
    flags = compute_blue_point_flags(
        members, _positions(members), challenged_streak=set(), has_challenge={1, 2}, rules=RULES
    )
    assert flags[3] == (True, True)


def test_player_with_a_free_target_is_not_locked() -> None:
    members = _members(3)
    flags = compute_blue_point_flags(
        members, _positions(members), challenged_streak=set(), has_challenge={1}, rules=RULES
    )
    assert flags[3] == (False, False)


def test_suspended_player_is_never_locked() -> None:
    members = [
        MemberState(user_id=1, position=1),
        MemberState(user_id=2, position=2, is_suspended=True),
    ]
    flags = compute_blue_point_flags(
        members, _positions(members), challenged_streak=set(), has_challenge={1}, rules=RULES
    )
    assert flags[2] == (False, False)


def test_blue_point_players_cannot_count_each_other_as_targets() -> None:
    members = [
        MemberState(user_id=1, position=1),
        MemberState(user_id=2, position=2, is_blue_point=True),
        MemberState(user_id=3, position=3, is_blue_point=True),
    ]
    flags = compute_blue_point_flags(
        members, _positions(members), challenged_streak=set(), has_challenge={1}, rules=RULES
    )
    assert flags[3] == (True, True)


def test_targets_out_of_reach_leave_player_locked() -> None:
    rules = RankingRules(
        slug=None,
        max_positions_up=10,
        access_threshold=None,
        blue_point_policy=BluePointPolicy(range_limit=1),
    )
    members = _members(4)
    flags = compute_blue_point_flags(
        members, _positions(members), challenged_streak=set(), has_challenge={3}, rules=rules
    )
    assert flags[4] == (True, True)


def test_access_player_only_targets_from_threshold_down() -> None:
    members = [
        MemberState(user_id=1, position=1),
        MemberState(user_id=2, position=2),
        MemberState(user_id=3, position=3),
        MemberState(user_id=4, position=4, is_access_challenge=True),
    ]
    busy_threshold = compute_blue_point_flags(
        members, _positions(members), challenged_streak=set(), has_challenge={3}, rules=RULES
    )
    assert busy_threshold[4] == (True, True)

    free_threshold = compute_blue_point_flags(
        members, _positions(members), challenged_streak=set(), has_challenge=set(), rules=RULES
    )
    assert free_threshold[4] == (False, False)


def test_final_positions_take_precedence_over_stored_ones() -> None:
    members = _members(3)
    flags = compute_blue_point_flags(
        members, {1: 3, 2: 2, 3: 1}, challenged_streak={1}, has_challenge={1, 2, 3}, rules=RULES
    )
    assert flags[1] == (True, False)
    assert flags[3] == (False, False)
