"""Read helpers for challenges and their audit events."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from domain.baseline import PositionHint
from models import Challenge, ChallengeEvent, User


def list_month_challenges(
    session: Session,
    *,
    ranking_id: int,
    start: datetime,
    end: datetime,
) -> list[Challenge]:
    """Non-cancelled challenges resolved (played, else scheduled) in ``[start, end)``.

    Bounds are naive UTC. Rows come back in resolution-time order, then by id.
    """
    resolved_at = func.coalesce(Challenge.played_at, Challenge.scheduled_for)
    statement = (
        select(Challenge)
        .where(
            Challenge.ranking_id == ranking_id,
            Challenge.status != "cancelled",
            resolved_at >= start,
            resolved_at < end,
        )
        .order_by(resolved_at.asc(), Challenge.id.asc())
    )
    return list(session.execute(statement).scalars())


def list_position_hints(
    session: Session,
    *,
    ranking_id: int,
    start: datetime,
    end: datetime,
) -> list[PositionHint]:
    """Positions recorded on challenges scheduled in ``[start, end)``."""
    statement = select(
        Challenge.challenger_id,
        Challenge.challenged_id,
        Challenge.challenger_position_at_challenge,
        Challenge.challenged_position_at_challenge,
    ).where(
        Challenge.ranking_id == ranking_id,
        Challenge.scheduled_for >= start,
        Challenge.scheduled_for < end,
    )
    return [
        PositionHint(
            challenger_id=row.challenger_id,
            challenged_id=row.challenged_id,
            challenger_position=row.challenger_position_at_challenge,
            challenged_position=row.challenged_position_at_challenge,
        )
        for row in session.execute(statement)
    ]


def admin_created_challenge_ids(session: Session, *, challenge_ids: Sequence[int]) -> set[int]:
    """Challenges whose ``created`` event was recorded by an admin."""
    if not challenge_ids:
        return set()
    statement = (
        select(ChallengeEvent.challenge_id)
        .join(User, ChallengeEvent.user_id == User.id)
        .where(
            ChallengeEvent.challenge_id.in_(list(challenge_ids)),
            ChallengeEvent.event_type == "created",
            User.role == "admin",
        )
    )
    return {int(challenge_id) for challenge_id in session.execute(statement).scalars()}
