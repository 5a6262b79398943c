"""Persistence helpers for rankings and their memberships."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from models import Ranking, RankingMembership, User


def get_ranking(session: Session, ranking_id: int) -> Ranking | None:
    return session.get(Ranking, ranking_id)


def get_ranking_by_slug(session: Session, slug: str) -> Ranking | None:
    return session.execute(select(Ranking).where(Ranking.slug == slug)).scalar_one_or_none()


def list_rankings(session: Session, *, slugs: Iterable[str] | None = None) -> list[Ranking]:
    statement = select(Ranking).order_by(Ranking.id.asc())
    if slugs is not None:
        statement = statement.where(Ranking.slug.in_(list(slugs)))
    return list(session.execute(statement).scalars())


def lock_ranking(session: Session, ranking_id: int, *, now: datetime) -> bool:
    """Take a write lock on the ranking row for the rest of the transaction.

    Returns ``False`` when the ranking does not exist.
    """
    result = session.execute(
        update(Ranking).where(Ranking.id == ranking_id).values(updated_at=now)
    )
    return bool(result.rowcount)


def list_memberships(session: Session, *, ranking_id: int) -> list[RankingMembership]:
    """Memberships by stored position; unpositioned members last, ties by user id."""
    statement = (
        select(RankingMembership)
        .where(RankingMembership.ranking_id == ranking_id)
        .order_by(
            RankingMembership.position.is_(None),
            RankingMembership.position.asc(),
            RankingMembership.user_id.asc(),
        )
    )
    return list(session.execute(statement).scalars())


def count_memberships(session: Session, *, ranking_id: int, include_suspended: bool = True) -> int:
    statement = select(func.count(RankingMembership.id)).where(RankingMembership.ranking_id == ranking_id)
    if not include_suspended:
        statement = statement.where(RankingMembership.is_suspended.is_(False))
    return int(session.scalar(statement) or 0)


def fetch_member_names(session: Session, *, user_ids: Sequence[int]) -> dict[int, str]:
    if not user_ids:
        return {}
    users = session.execute(select(User).where(User.id.in_(list(user_ids)))).scalars()
    return {user.id: user.display_name for user in users}


def fetch_user_role(session: Session, *, user_id: int) -> str | None:
    return session.execute(select(User.role).where(User.id == user_id)).scalar_one_or_none()


def update_membership_positions(
    session: Session,
    *,
    ranking_id: int,
    positions: Mapping[int, int],
    now: datetime,
) -> None:
    """Write position -> user id assignments onto the ranking's memberships."""
    for position, user_id in positions.items():
        session.execute(
            update(RankingMembership)
            .where(
                RankingMembership.ranking_id == ranking_id,
                RankingMembership.user_id == user_id,
            )
            .values(position=position, updated_at=now)
        )


def update_membership_flags(
    session: Session,
    *,
    ranking_id: int,
    flags: Mapping[int, tuple[bool, bool]],
    now: datetime,
) -> None:
    """Write (is_blue_point, is_locked) per user id."""
    for user_id, (is_blue_point, is_locked) in flags.items():
        session.execute(
            update(RankingMembership)
            .where(
                RankingMembership.ranking_id == ranking_id,
                RankingMembership.user_id == user_id,
            )
            .values(is_blue_point=is_blue_point, is_locked=is_locked, updated_at=now)
        )
