"""Persistence helpers for rounds and round logs."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.orm import Session

from models import Round, RoundLog

MANUAL_ORDER_LOG_LINE = 0
MANUAL_ORDER_LOG_MESSAGE = "Manual order applied by an administrator."


def list_open_rounds(
    session: Session,
    *,
    ranking_id: int,
    include_global: bool = True,
) -> list[Round]:
    """Open rounds of the ranking (and global ones), newest reference month first."""
    scope = Round.ranking_id == ranking_id
    if include_global:
        scope = or_(scope, Round.ranking_id.is_(None))
    statement = (
        select(Round)
        .where(Round.status == "open", scope)
        .order_by(Round.reference_month.desc(), Round.id.desc())
    )
    return list(session.execute(statement).scalars())


def find_round(session: Session, *, ranking_id: int | None, reference_month: date) -> Round | None:
    ranking_filter = Round.ranking_id.is_(None) if ranking_id is None else Round.ranking_id == ranking_id
    statement = (
        select(Round)
        .where(ranking_filter, Round.reference_month == reference_month)
        .order_by(Round.id.desc())
        .limit(1)
    )
    return session.execute(statement).scalar_one_or_none()


def close_rounds_for_month(
    session: Session,
    *,
    ranking_id: int,
    reference_month: date,
    include_global: bool,
    now: datetime,
    updated_by: int | None = None,
) -> int:
    """Mark the month's rounds of the ranking closed; optionally the global one too."""
    scope = Round.ranking_id == ranking_id
    if include_global:
        scope = or_(scope, Round.ranking_id.is_(None))
    result = session.execute(
        update(Round)
        .where(Round.reference_month == reference_month, scope)
        .values(status="closed", closed_at=now, updated_at=now, updated_by=updated_by)
    )
    return int(result.rowcount or 0)


def close_other_open_rounds(
    session: Session,
    *,
    ranking_id: int,
    keep_month: date,
    now: datetime,
) -> int:
    result = session.execute(
        update(Round)
        .where(
            Round.ranking_id == ranking_id,
            Round.status == "open",
            Round.reference_month != keep_month,
        )
        .values(status="closed", closed_at=now, updated_at=now)
    )
    return int(result.rowcount or 0)


def list_round_logs(session: Session, *, ranking_id: int, reference_month: date) -> list[RoundLog]:
    statement = (
        select(RoundLog)
        .where(RoundLog.ranking_id == ranking_id, RoundLog.reference_month == reference_month)
        .order_by(RoundLog.line_no.asc(), RoundLog.id.asc())
    )
    return list(session.execute(statement).scalars())


def replace_round_logs(
    session: Session,
    *,
    ranking_id: int,
    reference_month: date,
    lines: Sequence[str],
) -> None:
    """Rewrite the month's log lines, numbered from 1. The manual-order marker survives."""
    session.execute(
        delete(RoundLog).where(
            RoundLog.ranking_id == ranking_id,
            RoundLog.reference_month == reference_month,
            RoundLog.line_no != MANUAL_ORDER_LOG_LINE,
        )
    )
    if not lines:
        return
    session.execute(
        insert(RoundLog),
        [
            {
                "ranking_id": ranking_id,
                "reference_month": reference_month,
                "line_no": index,
                "message": message,
            }
            for index, message in enumerate(lines, start=1)
        ],
    )


def has_manual_order_marker(session: Session, *, ranking_id: int, reference_month: date) -> bool:
    statement = (
        select(RoundLog.id)
        .where(
            RoundLog.ranking_id == ranking_id,
            RoundLog.reference_month == reference_month,
            RoundLog.line_no == MANUAL_ORDER_LOG_LINE,
            RoundLog.message == MANUAL_ORDER_LOG_MESSAGE,
        )
        .limit(1)
    )
    return session.execute(statement).first() is not None


def write_manual_order_marker(session: Session, *, ranking_id: int, reference_month: date) -> None:
    session.execute(
        delete(RoundLog).where(
            RoundLog.ranking_id == ranking_id,
            RoundLog.reference_month == reference_month,
            RoundLog.line_no == MANUAL_ORDER_LOG_LINE,
        )
    )
    session.add(
        RoundLog(
            ranking_id=ranking_id,
            reference_month=reference_month,
            line_no=MANUAL_ORDER_LOG_LINE,
            message=MANUAL_ORDER_LOG_MESSAGE,
        )
    )
    session.flush()
