"""Blue-point eligibility and lock flags recomputed after a round closes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, tzinfo

from sqlalchemy.orm import Session

from domain.common import MemberState
from domain.config import RankingRules
from domain.dates import month_range, shift_month, to_naive_utc
from domain.protocol import ChallengeStatus
from domain.results import ChallengeResultSource, resolve_challenge_status
from repositories.challenges import list_month_challenges
from repositories.rankings import list_memberships, update_membership_flags

_PENDING_STATUSES = (ChallengeStatus.SCHEDULED, ChallengeStatus.ACCEPTED)


def compute_blue_point_flags(
    members: Sequence[MemberState],
    positions_by_user: Mapping[int, int],
    *,
    challenged_streak: Iterable[int],
    has_challenge: Iterable[int],
    rules: RankingRules,
) -> dict[int, tuple[bool, bool]]:
    """Return ``user_id -> (is_blue_point, is_locked)``.

    A member is locked when they are not first, not suspended, had no challenge
    this month and no unchallenged target is within their reach. Blue-point
    eligibility goes to members below first place who were challenged in each
    of the recent months, and to every locked member.
    """
    streak = set(challenged_streak)
    busy = set(has_challenge)
    reach = min(rules.max_positions_up, rules.blue_point_policy.range_limit)
    access_threshold = rules.access_threshold

    def position_of(member: MemberState) -> int:
        return positions_by_user.get(member.user_id) or member.position or 0

    flags: dict[int, tuple[bool, bool]] = {}
    for member in members:
        position = position_of(member)

        locked = False
        if position > 1 and not member.is_suspended and member.user_id not in busy:
            locked = True
            for target in members:
                if target.user_id == member.user_id or target.is_suspended:
                    continue
                target_position = position_of(target)
                if target_position <= 0:
                    continue
                if member.is_access_challenge:
                    if access_threshold and target_position < access_threshold:
                        continue
                else:
                    if target_position >= position:
                        continue
                    if position - target_position > reach:
                        continue
                if member.is_blue_point and target.is_blue_point:
                    continue
                if target.user_id in busy:
                    continue
                locked = False
                break

        enabled = (position > 1 and member.user_id in streak) or locked
        flags[member.user_id] = (enabled, locked)
    return flags


def evaluate_blue_points(
    session: Session,
    *,
    ranking_id: int,
    month: date,
    positions_by_user: Mapping[int, int],
    rules: RankingRules,
    tz: tzinfo,
    now: datetime,
) -> dict[int, tuple[bool, bool]]:
    """Recompute and store the flags for one ranking. Never commits."""
    threshold = max(1, rules.blue_point_policy.consecutive_challenges_threshold)

    challenged_streak: set[int] | None = None
    has_challenge: set[int] = set()
    for offset in range(threshold):
        check_month = shift_month(month, -offset)
        start, end = month_range(check_month, tz)
        challenged: set[int] = set()
        for challenge in list_month_challenges(
            session,
            ranking_id=ranking_id,
            start=to_naive_utc(start),
            end=to_naive_utc(end),
        ):
            status = resolve_challenge_status(ChallengeResultSource.from_challenge(challenge))
            if status == ChallengeStatus.COMPLETED:
                challenged.add(challenge.challenged_id)
            if offset == 0 and (status == ChallengeStatus.COMPLETED or status in _PENDING_STATUSES):
                has_challenge.update((challenge.challenger_id, challenge.challenged_id))
        challenged_streak = challenged if challenged_streak is None else challenged_streak & challenged

    members = [
        MemberState.from_membership(row) for row in list_memberships(session, ranking_id=ranking_id)
    ]
    flags = compute_blue_point_flags(
        members,
        positions_by_user,
        challenged_streak=challenged_streak or set(),
        has_challenge=has_challenge,
        rules=rules,
    )
    update_membership_flags(session, ranking_id=ranking_id, flags=flags, now=to_naive_utc(now))
    return flags


__all__ = ["compute_blue_point_flags", "evaluate_blue_points"]
