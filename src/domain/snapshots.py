"""Start/end ranking snapshots: ensure a month's baseline and restore stored ones."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime

from sqlalchemy.orm import Session

from domain.baseline import fallback_baseline, member_positions
from domain.dates import parse_reference_month, to_naive_utc
from domain.errors import RankingNotFoundError, SnapshotNotFoundError
from domain.protocol import SnapshotType
from repositories.rankings import list_memberships, lock_ranking, update_membership_positions
from repositories.snapshots import fetch_snapshot, insert_snapshot_rows, snapshot_exists

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RestoredSnapshot:
    positions: dict[int, int]
    snapshot_type: SnapshotType


def ensure_baseline_snapshot(session: Session, *, ranking_id: int, month: date) -> bool:
    """Store the month's start snapshot from the membership order unless one exists.

    Returns ``True`` when rows were written. Never commits.
    """
    if snapshot_exists(
        session,
        ranking_id=ranking_id,
        round_month=month,
        snapshot_type=SnapshotType.START.value,
    ):
        return False

    members = list_memberships(session, ranking_id=ranking_id)
    if not members:
        return False

    positions = fallback_baseline(member_positions(members))
    inserted = insert_snapshot_rows(
        session,
        ranking_id=ranking_id,
        round_month=month,
        snapshot_type=SnapshotType.START.value,
        positions=positions,
    )
    return inserted > 0


def restore_snapshot(
    session_factory,
    ranking_id: int,
    reference_month: str,
    *,
    prefer_end_snapshot: bool = False,
    persist_memberships: bool = True,
    now: datetime | None = None,
) -> RestoredSnapshot:
    """Write a stored snapshot back onto the ranking's memberships.

    The end snapshot is used when requested and present; otherwise the start
    snapshot. Raises ``SnapshotNotFoundError`` when neither exists.
    """
    month = parse_reference_month(reference_month)
    stamp = to_naive_utc(now or datetime.now(UTC))

    with session_factory() as session:
        try:
            if not lock_ranking(session, ranking_id, now=stamp):
                raise RankingNotFoundError(ranking_id)

            positions: dict[int, int] = {}
            snapshot_type = SnapshotType.START
            if prefer_end_snapshot:
                positions = fetch_snapshot(
                    session,
                    ranking_id=ranking_id,
                    round_month=month,
                    snapshot_type=SnapshotType.END.value,
                )
                snapshot_type = SnapshotType.END
            if not positions:
                positions = fetch_snapshot(
                    session,
                    ranking_id=ranking_id,
                    round_month=month,
                    snapshot_type=SnapshotType.START.value,
                )
                snapshot_type = SnapshotType.START
            if not positions:
                raise SnapshotNotFoundError(ranking_id, reference_month)

            if persist_memberships:
                update_membership_positions(session, ranking_id=ranking_id, positions=positions, now=stamp)
            session.commit()
        except Exception:
            session.rollback()
            raise

    logger.info(
        "Restored %s snapshot ranking_id=%s month=%s players=%s persisted=%s",
        snapshot_type.value,
        ranking_id,
        reference_month,
        len(positions),
        persist_memberships,
    )
    return RestoredSnapshot(positions=positions, snapshot_type=snapshot_type)


__all__ = ["RestoredSnapshot", "ensure_baseline_snapshot", "restore_snapshot"]
