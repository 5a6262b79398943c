"""Build the baseline ladder a round is replayed against."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

_UNSET = sys.maxsize


@dataclass(frozen=True)
class MemberPosition:
    user_id: int
    position: int | None


@dataclass(frozen=True)
class PositionHint:
    """Positions recorded on a challenge when it was created."""

    challenger_id: int
    challenged_id: int
    challenger_position: int | None
    challenged_position: int | None


def member_positions(rows: Iterable[Any]) -> list[MemberPosition]:
    """Adapt membership rows (anything with ``user_id`` and ``position``)."""
    return [MemberPosition(user_id=int(row.user_id), position=row.position) for row in rows]


def positions_from_members(members: Sequence[MemberPosition]) -> dict[int, int]:
    """Current membership order, densified; missing positions sort last, ties by id."""
    ordered = sorted(
        members,
        key=lambda member: (member.position if member.position is not None else _UNSET, member.user_id),
    )
    return {index: member.user_id for index, member in enumerate(ordered, start=1)}


def fallback_baseline(members: Sequence[MemberPosition]) -> dict[int, int]:
    """Members in the order given."""
    return {index: member.user_id for index, member in enumerate(members, start=1)}


def baseline_from_hints(
    members: Sequence[MemberPosition],
    hints: Iterable[PositionHint],
) -> dict[int, int]:
    """Reconstruct the month's starting order from positions recorded on its challenges.

    Each hinted member takes their best recorded position; ties fall back to
    the current membership position and then the user id. Members without a
    hint keep their current relative order below the hinted ones.
    """
    best_hint: dict[int, int] = {}
    for hint in hints:
        for user_id, position in (
            (hint.challenger_id, hint.challenger_position),
            (hint.challenged_id, hint.challenged_position),
        ):
            if not user_id or not position or position <= 0:
                continue
            if user_id not in best_hint or position < best_hint[user_id]:
                best_hint[user_id] = position

    if not best_hint:
        return {}

    fallback_order = {
        member.user_id: member.position if member.position is not None else index
        for index, member in enumerate(members, start=1)
    }
    hinted = sorted(
        (member for member in members if member.user_id in best_hint),
        key=lambda member: (
            best_hint[member.user_id],
            fallback_order.get(member.user_id, _UNSET),
            member.user_id,
        ),
    )

    baseline: dict[int, int] = {}
    assigned: set[int] = set()
    position = 1
    for member in [*hinted, *members]:
        if member.user_id in assigned:
            continue
        baseline[position] = member.user_id
        assigned.add(member.user_id)
        position += 1
    return baseline


def invert_positions(positions: Mapping[int, int]) -> dict[int, int]:
    """Position -> user id into user id -> position."""
    return {user_id: position for position, user_id in positions.items()}


def unique_snapshot_rows(positions: Mapping[int, int]) -> dict[int, int]:
    """User id -> best valid position, dropping non-positive ids and positions."""
    best: dict[int, int] = {}
    for position, user_id in positions.items():
        if user_id <= 0 or position <= 0:
            continue
        if user_id not in best or position < best[user_id]:
            best[user_id] = position
    return best


__all__ = [
    "MemberPosition",
    "PositionHint",
    "baseline_from_hints",
    "fallback_baseline",
    "invert_positions",
    "member_positions",
    "positions_from_members",
    "unique_snapshot_rows",
]
