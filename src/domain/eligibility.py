"""Rules deciding whether one member may challenge another right now."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from domain.common import MemberState
from domain.config import LadderConfig, RankingRules
from domain.errors import RankingNotFoundError
from domain.protocol import WindowPhase
from domain.windows import WindowState, resolve_challenge_windows, to_window_state
from repositories.rankings import fetch_user_role, get_ranking, list_memberships


@dataclass(frozen=True)
class EligibilityDecision:
    allowed: bool
    reason: str | None = None


_ALLOWED = EligibilityDecision(allowed=True)


def _deny(reason: str) -> EligibilityDecision:
    return EligibilityDecision(allowed=False, reason=reason)


def check_challenge_eligibility(
    state: WindowState,
    challenger: MemberState,
    challenged: MemberState,
    rules: RankingRules,
    *,
    member_count: int,
    is_admin: bool = False,
) -> EligibilityDecision:
    """Apply window, blue-point, access and climb rules to one proposed challenge.

    Admins bypass the window and ladder rules but still cannot pair a player
    with themselves.
    """
    if challenger.user_id == challenged.user_id:
        return _deny("A player cannot challenge themselves.")
    if is_admin:
        return _ALLOWED

    if challenger.is_suspended:
        return _deny("Suspended players cannot challenge.")
    if challenged.is_suspended:
        return _deny("Suspended players cannot be challenged.")
    if challenged.is_locked:
        return _deny("This player is locked and cannot be challenged.")

    if state.phase == WindowPhase.BLUE:
        if not challenger.is_blue_point:
            return _deny("Only blue-point players may challenge during this period.")
        if challenged.is_blue_point:
            return _deny("Blue-point players cannot challenge another blue-point player.")
    elif not state.can_challenge:
        return _deny(state.message)
    elif challenger.is_blue_point:
        return _deny("Once open challenges start only regular players may challenge.")

    challenger_position = challenger.position or 0
    challenged_position = challenged.position or 0

    if challenger.is_access_challenge:
        if state.phase != WindowPhase.OPEN:
            return _deny("Access players may only challenge during the open window.")
        if rules.access_threshold:
            threshold = min(rules.access_threshold, member_count)
            if challenged_position < threshold:
                return _deny(f"Access players may only challenge from position {threshold} down.")
        return _ALLOWED

    if challenger_position > 0 and challenged_position > 0:
        if challenged_position >= challenger_position:
            return _deny("Players can only challenge someone ranked above them.")
        if challenger_position - challenged_position > rules.max_positions_up:
            return _deny(f"You may only challenge up to {rules.max_positions_up} positions above.")

    return _ALLOWED


def evaluate_challenge(
    session: Session,
    ranking_id: int,
    challenger_id: int,
    challenged_id: int,
    now: datetime,
    *,
    config: LadderConfig,
    acting_user_id: int | None = None,
) -> EligibilityDecision:
    """Resolve the ranking's window at ``now`` and check one proposed challenge.

    The acting user counts as an admin when their stored role is ``admin``.
    """
    ranking = get_ranking(session, ranking_id)
    if ranking is None:
        raise RankingNotFoundError(ranking_id)

    members = {row.user_id: row for row in list_memberships(session, ranking_id=ranking_id)}
    missing = [user_id for user_id in (challenger_id, challenged_id) if user_id not in members]
    if missing:
        return _deny(f"Players not in this ranking: {missing}")

    tz = config.tzinfo
    state = to_window_state(resolve_challenge_windows(session, ranking_id, now, config=config), now, tz=tz)
    is_admin = acting_user_id is not None and fetch_user_role(session, user_id=acting_user_id) == "admin"
    return check_challenge_eligibility(
        state,
        MemberState.from_membership(members[challenger_id]),
        MemberState.from_membership(members[challenged_id]),
        config.rules_for(ranking.slug),
        member_count=len(members),
        is_admin=is_admin,
    )


__all__ = ["EligibilityDecision", "check_challenge_eligibility", "evaluate_challenge"]
