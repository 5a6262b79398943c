"""Close a month and open the next round for one or more rankings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, tzinfo

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from domain.common import Violation
from domain.config import LadderConfig
from domain.dates import (
    as_utc,
    business_day,
    format_month_value,
    last_day_of_month,
    local_datetime,
    month_diff,
    next_active_month,
    parse_reference_month,
    shift_datetime_months,
    to_naive_utc,
)
from domain.errors import (
    InvalidReferenceMonthError,
    RankingNotFoundError,
    RecalculationFailedError,
    RoundConflictError,
)
from domain.round_closer import CloseRoundResult, close_round
from models import Round
from repositories.rankings import get_ranking, list_rankings, lock_ranking
from repositories.rounds import close_other_open_rounds, find_round

logger = logging.getLogger(__name__)

WINDOW_OPENS = time(7, 0)
WINDOW_CLOSES = time(23, 59)

_ROUND_TIMESTAMP_FIELDS = (
    "round_opens_at",
    "blue_point_opens_at",
    "blue_point_closes_at",
    "open_challenges_at",
    "open_challenges_end_at",
    "matches_deadline",
)


@dataclass(frozen=True)
class RoundSchedule:
    """Aware UTC boundaries of a round."""

    round_opens_at: datetime
    blue_point_opens_at: datetime
    blue_point_closes_at: datetime
    open_challenges_at: datetime
    open_challenges_end_at: datetime
    matches_deadline: datetime


@dataclass(frozen=True)
class RolledRound:
    ranking_id: int
    round_id: int
    reference_month: date
    reopened: bool


@dataclass(frozen=True)
class RolloverSummary:
    source_month: date
    target_month: date
    ranking_ids: list[int]
    rounds: list[RolledRound] = field(default_factory=list)
    closes: dict[int, CloseRoundResult] = field(default_factory=dict)


def default_schedule(month: date, tz: tzinfo) -> RoundSchedule:
    """Round spans the month; blue-point window on the first business day, open from the second."""
    first_business_day = business_day(month, 1)
    second_business_day = business_day(month, 2)
    last_day = last_day_of_month(month)
    return RoundSchedule(
        round_opens_at=local_datetime(month, time(0, 0), tz),
        blue_point_opens_at=local_datetime(first_business_day, WINDOW_OPENS, tz),
        blue_point_closes_at=local_datetime(first_business_day, WINDOW_CLOSES, tz),
        open_challenges_at=local_datetime(second_business_day, WINDOW_OPENS, tz),
        open_challenges_end_at=local_datetime(last_day, WINDOW_CLOSES, tz),
        matches_deadline=local_datetime(last_day, WINDOW_CLOSES, tz),
    )


def shifted_schedule(source: Round | None, month: date, offset: int, tz: tzinfo) -> RoundSchedule:
    """Source round's timestamps moved ``offset`` months; missing ones take the defaults."""
    defaults = default_schedule(month, tz)
    if source is None:
        return defaults
    values = {
        name: shift_datetime_months(getattr(source, name), offset, tz) or getattr(defaults, name)
        for name in _ROUND_TIMESTAMP_FIELDS
    }
    return RoundSchedule(**values)


def rollover_round(
    session_factory,
    ranking_id: int,
    reference_month: str,
    acting_user_id: int | None,
    *,
    config: LadderConfig,
    target_month: str | None = None,
    include_all: bool = False,
    skip_recalculate: bool = False,
    now: datetime | None = None,
) -> RolloverSummary:
    """Close ``reference_month`` and make sure the next round is open.

    Every target ranking is closed first; if any of them is blocked by
    violations nothing is provisioned and ``RecalculationFailedError`` lists
    them all. With ``include_all`` the configured sibling rankings are rolled
    over too and the month's global round is closed.
    """
    month = parse_reference_month(reference_month)
    if target_month is not None:
        next_month = parse_reference_month(target_month)
        if month_diff(month, next_month) < 1:
            raise InvalidReferenceMonthError(
                f"Target month {target_month} must be after the reference month {reference_month}"
            )
    else:
        next_month = next_active_month(month, config.inactive_months)
    offset = max(1, month_diff(month, next_month))
    moment = as_utc(now) if now is not None else datetime.now(UTC)

    with session_factory() as session:
        if get_ranking(session, ranking_id) is None:
            raise RankingNotFoundError(ranking_id)
        target_ids = [ranking_id]
        if include_all:
            target_ids.extend(
                ranking.id for ranking in list_rankings(session, slugs=config.rollover_include_all_slugs)
            )
        target_ids = list(dict.fromkeys(target_ids))

    closes: dict[int, CloseRoundResult] = {}
    if not skip_recalculate:
        blocked: dict[int, list[Violation]] = {}
        for target_id in target_ids:
            result = close_round(
                session_factory,
                target_id,
                reference_month,
                acting_user_id,
                config=config,
                close_status=True,
                now=moment,
            )
            closes[target_id] = result
            if result.violations and not result.persisted:
                blocked[target_id] = result.violations
        if blocked:
            raise RecalculationFailedError(blocked)

    with session_factory() as session:
        try:
            rounds = [
                _provision_next_round(
                    session,
                    ranking_id=target_id,
                    month=month,
                    next_month=next_month,
                    offset=offset,
                    include_all=include_all,
                    acting_user_id=acting_user_id,
                    tz=config.tzinfo,
                    moment=moment,
                )
                for target_id in target_ids
            ]
            session.commit()
        except (OperationalError, IntegrityError) as exc:
            session.rollback()
            raise RoundConflictError(
                f"Conflicting write while opening {format_month_value(next_month)}; retry the rollover"
            ) from exc
        except Exception:
            session.rollback()
            raise

    for rolled in rounds:
        logger.info(
            "Rolled over ranking_id=%s from=%s to=%s round_id=%s reopened=%s",
            rolled.ranking_id,
            reference_month,
            format_month_value(next_month),
            rolled.round_id,
            rolled.reopened,
        )
    return RolloverSummary(
        source_month=month,
        target_month=next_month,
        ranking_ids=target_ids,
        rounds=rounds,
        closes=closes,
    )


def _provision_next_round(
    session: Session,
    *,
    ranking_id: int,
    month: date,
    next_month: date,
    offset: int,
    include_all: bool,
    acting_user_id: int | None,
    tz: tzinfo,
    moment: datetime,
) -> RolledRound:
    stamp = to_naive_utc(moment)
    if not lock_ranking(session, ranking_id, now=stamp):
        raise RankingNotFoundError(ranking_id)

    source = find_round(session, ranking_id=ranking_id, reference_month=month) or find_round(
        session, ranking_id=None, reference_month=month
    )
    # the global round is shared; only an all-rankings rollover closes it
    if source is not None and (source.ranking_id is not None or include_all):
        source.status = "closed"
        source.closed_at = stamp
        source.updated_at = stamp

    close_other_open_rounds(session, ranking_id=ranking_id, keep_month=next_month, now=stamp)

    schedule = shifted_schedule(source, next_month, offset, tz)
    existing = find_round(session, ranking_id=ranking_id, reference_month=next_month)
    if existing is not None:
        existing.status = "open"
        existing.closed_at = None
        existing.updated_by = acting_user_id
        existing.updated_at = stamp
        for name in _ROUND_TIMESTAMP_FIELDS:
            if getattr(existing, name) is None:
                setattr(existing, name, to_naive_utc(getattr(schedule, name)))
        session.flush()
        return RolledRound(
            ranking_id=ranking_id,
            round_id=existing.id,
            reference_month=next_month,
            reopened=True,
        )

    title = (source.title or "").strip() if source is not None else ""
    next_round = Round(
        ranking_id=ranking_id,
        title=title or f"Round {format_month_value(next_month)}",
        reference_month=next_month,
        status="open",
        updated_by=acting_user_id,
        closed_at=None,
        created_at=stamp,
        updated_at=stamp,
        **{name: to_naive_utc(getattr(schedule, name)) for name in _ROUND_TIMESTAMP_FIELDS},
    )
    session.add(next_round)
    session.flush()
    return RolledRound(
        ranking_id=ranking_id,
        round_id=next_round.id,
        reference_month=next_month,
        reopened=False,
    )


__all__ = [
    "RolledRound",
    "RolloverSummary",
    "RoundSchedule",
    "default_schedule",
    "rollover_round",
    "shifted_schedule",
]
