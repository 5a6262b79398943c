"""Persistence helpers for ranking snapshots."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from domain.baseline import unique_snapshot_rows
from models import RankingSnapshot


def fetch_snapshot(
    session: Session,
    *,
    ranking_id: int,
    round_month: date,
    snapshot_type: str,
) -> dict[int, int]:
    """Stored snapshot as position -> user id, in position order."""
    statement = (
        select(RankingSnapshot.position, RankingSnapshot.user_id)
        .where(
            RankingSnapshot.ranking_id == ranking_id,
            RankingSnapshot.round_month == round_month,
            RankingSnapshot.snapshot_type == snapshot_type,
        )
        .order_by(RankingSnapshot.position.asc())
    )
    return {int(row.position): int(row.user_id) for row in session.execute(statement)}


def snapshot_exists(
    session: Session,
    *,
    ranking_id: int,
    round_month: date,
    snapshot_type: str,
) -> bool:
    statement = (
        select(RankingSnapshot.id)
        .where(
            RankingSnapshot.ranking_id == ranking_id,
            RankingSnapshot.round_month == round_month,
            RankingSnapshot.snapshot_type == snapshot_type,
        )
        .limit(1)
    )
    return session.execute(statement).first() is not None


def insert_snapshot_rows(
    session: Session,
    *,
    ranking_id: int,
    round_month: date,
    snapshot_type: str,
    positions: Mapping[int, int],
) -> int:
    """Insert one row per user, skipping rows that already exist."""
    rows = [
        {
            "ranking_id": ranking_id,
            "round_month": round_month,
            "snapshot_type": snapshot_type,
            "user_id": user_id,
            "position": position,
        }
        for user_id, position in unique_snapshot_rows(positions).items()
    ]
    if not rows:
        return 0

    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        statement = postgresql.insert(RankingSnapshot).on_conflict_do_nothing()
    elif dialect_name == "sqlite":
        statement = sqlite.insert(RankingSnapshot).on_conflict_do_nothing()
    else:
        existing = set(
            session.execute(
                select(RankingSnapshot.user_id).where(
                    RankingSnapshot.ranking_id == ranking_id,
                    RankingSnapshot.round_month == round_month,
                    RankingSnapshot.snapshot_type == snapshot_type,
                )
            ).scalars()
        )
        rows = [row for row in rows if row["user_id"] not in existing]
        if not rows:
            return 0
        statement = RankingSnapshot.__table__.insert()
    session.execute(statement, rows)
    return len(rows)


def delete_snapshot(
    session: Session,
    *,
    ranking_id: int,
    round_month: date,
    snapshot_type: str,
) -> None:
    session.execute(
        delete(RankingSnapshot).where(
            RankingSnapshot.ranking_id == ranking_id,
            RankingSnapshot.round_month == round_month,
            RankingSnapshot.snapshot_type == snapshot_type,
        )
    )


def replace_snapshot(
    session: Session,
    *,
    ranking_id: int,
    round_month: date,
    snapshot_type: str,
    positions: Mapping[int, int],
) -> int:
    delete_snapshot(session, ranking_id=ranking_id, round_month=round_month, snapshot_type=snapshot_type)
    return insert_snapshot_rows(
        session,
        ranking_id=ranking_id,
        round_month=round_month,
        snapshot_type=snapshot_type,
        positions=positions,
    )
