"""Close one ranking's monthly round: replay its challenges and persist the ladder."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, tzinfo
from typing import Any

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from domain.baseline import (
    baseline_from_hints,
    fallback_baseline,
    invert_positions,
    member_positions,
    positions_from_members,
)
from domain.blue_points import evaluate_blue_points
from domain.common import BaselineRow, RoundEvent, Violation
from domain.config import LadderConfig, RankingRules
from domain.dates import (
    as_utc,
    format_month_value,
    month_range,
    parse_reference_month,
    shift_month,
    to_naive_utc,
)
from domain.errors import InvalidManualOrderError, RankingNotFoundError, RoundConflictError
from domain.protocol import ChallengeStatus, ChallengeWinner, EventResult, SnapshotType
from domain.results import ChallengeResultSource, resolve_challenge_status, resolve_challenge_winner
from domain.round_processor import process_round
from repositories.challenges import (
    admin_created_challenge_ids,
    list_month_challenges,
    list_position_hints,
)
from repositories.rankings import (
    fetch_member_names,
    get_ranking,
    list_memberships,
    lock_ranking,
    update_membership_positions,
)
from repositories.rounds import (
    close_rounds_for_month,
    has_manual_order_marker,
    replace_round_logs,
    write_manual_order_marker,
)
from repositories.snapshots import fetch_snapshot, insert_snapshot_rows, replace_snapshot

logger = logging.getLogger(__name__)

MANUAL_CLOSE_LOG_LINE = "Ranking closed with the manual order."


@dataclass(frozen=True)
class CloseRoundResult:
    """Outcome of one close attempt.

    ``positions`` is position -> user id: the new ladder when persisted, the
    baseline when violations blocked the close.
    """

    violations: list[Violation]
    manual_override: bool
    log: list[str]
    positions: dict[int, int] = field(default_factory=dict)
    persisted: bool = False

    @property
    def ok(self) -> bool:
        return self.persisted


@dataclass(frozen=True)
class _CloseOptions:
    persist_memberships: bool
    close_status: bool
    manual_override: bool
    ignore_violations: bool
    close_global: bool
    acting_user_id: int | None


def close_round(
    session_factory,
    ranking_id: int,
    reference_month: str,
    acting_user_id: int | None,
    *,
    config: LadderConfig,
    persist_memberships: bool = True,
    close_status: bool = True,
    manual_override: bool = False,
    ignore_violations: bool = False,
    close_global: bool = False,
    now: datetime | None = None,
) -> CloseRoundResult:
    """Replay the month for one ranking and persist the result atomically.

    The whole load, simulate, validate and persist sequence runs in a single
    transaction that starts by write-locking the ranking row, so concurrent
    closes of the same ranking run one after the other. When violations are
    found (and not ignored) the transaction is rolled back and nothing is
    written.
    """
    month = parse_reference_month(reference_month)
    moment = as_utc(now) if now is not None else datetime.now(UTC)
    options = _CloseOptions(
        persist_memberships=persist_memberships,
        close_status=close_status,
        manual_override=manual_override,
        ignore_violations=ignore_violations,
        close_global=close_global,
        acting_user_id=acting_user_id,
    )

    with session_factory() as session:
        try:
            result = _close_in_session(
                session,
                ranking_id=ranking_id,
                month=month,
                config=config,
                options=options,
                moment=moment,
            )
            if result.persisted:
                session.commit()
            else:
                session.rollback()
        except (OperationalError, IntegrityError) as exc:
            session.rollback()
            raise RoundConflictError(
                f"Conflicting write while closing ranking_id={ranking_id} "
                f"month={reference_month}; retry the close"
            ) from exc
        except Exception:
            session.rollback()
            raise

    if result.persisted:
        logger.info(
            "Closed ranking_id=%s month=%s actor=%s players=%s manual_override=%s ignored_violations=%s",
            ranking_id,
            reference_month,
            acting_user_id,
            len(result.positions),
            result.manual_override,
            len(result.violations),
        )
    elif result.violations:
        logger.warning(
            "Close blocked ranking_id=%s month=%s violations=%s",
            ranking_id,
            reference_month,
            len(result.violations),
        )
    return result


def _close_in_session(
    session: Session,
    *,
    ranking_id: int,
    month: date,
    config: LadderConfig,
    options: _CloseOptions,
    moment: datetime,
) -> CloseRoundResult:
    stamp = to_naive_utc(moment)
    if not lock_ranking(session, ranking_id, now=stamp):
        raise RankingNotFoundError(ranking_id)

    ranking = get_ranking(session, ranking_id)
    rules = config.rules_for(ranking.slug if ranking is not None else None)
    tz = config.tzinfo

    members = list_memberships(session, ranking_id=ranking_id)
    if not members:
        return CloseRoundResult(violations=[], manual_override=False, log=[])

    baseline = _resolve_baseline(session, ranking_id=ranking_id, month=month, members=members, tz=tz)
    ignore = options.ignore_violations or has_manual_order_marker(
        session, ranking_id=ranking_id, reference_month=month
    )

    if options.manual_override and not ignore:
        final_positions = positions_from_members(member_positions(members))
        _persist_close(
            session,
            ranking_id=ranking_id,
            month=month,
            baseline=baseline,
            final_positions=final_positions,
            log=[MANUAL_CLOSE_LOG_LINE],
            rules=rules,
            tz=tz,
            options=options,
            stamp=stamp,
        )
        return CloseRoundResult(
            violations=[],
            manual_override=True,
            log=[MANUAL_CLOSE_LOG_LINE],
            positions=final_positions,
            persisted=True,
        )

    names = fetch_member_names(session, user_ids=list(baseline.values()))
    baseline_rows = [
        BaselineRow(user_id=user_id, position=position, name=names.get(user_id))
        for position, user_id in sorted(baseline.items())
    ]
    events = _load_round_events(
        session,
        ranking_id=ranking_id,
        month=month,
        members=members,
        rules=rules,
        tz=tz,
    )
    processed = process_round(baseline_rows, events, rules.max_positions_up)

    if processed.violations and not ignore:
        return CloseRoundResult(
            violations=processed.violations,
            manual_override=False,
            log=processed.log,
            positions=baseline,
        )

    final_positions = {
        position: user_id
        for position, user_id in processed.positions().items()
        if user_id > 0 and position > 0
    }
    _persist_close(
        session,
        ranking_id=ranking_id,
        month=month,
        baseline=baseline,
        final_positions=final_positions,
        log=processed.log,
        rules=rules,
        tz=tz,
        options=options,
        stamp=stamp,
    )
    return CloseRoundResult(
        violations=processed.violations if ignore else [],
        manual_override=False,
        log=processed.log,
        positions=final_positions,
        persisted=True,
    )


def _resolve_baseline(
    session: Session,
    *,
    ranking_id: int,
    month: date,
    members: Sequence[Any],
    tz: tzinfo,
) -> dict[int, int]:
    """Start snapshot, then the previous month's end snapshot, then challenge hints, then membership order."""
    baseline = fetch_snapshot(
        session,
        ranking_id=ranking_id,
        round_month=month,
        snapshot_type=SnapshotType.START.value,
    )
    if baseline:
        return baseline

    baseline = fetch_snapshot(
        session,
        ranking_id=ranking_id,
        round_month=shift_month(month, -1),
        snapshot_type=SnapshotType.END.value,
    )
    if baseline:
        return baseline

    start, end = month_range(month, tz)
    hints = list_position_hints(
        session,
        ranking_id=ranking_id,
        start=to_naive_utc(start),
        end=to_naive_utc(end),
    )
    baseline = baseline_from_hints(member_positions(members), hints)
    if baseline:
        return baseline

    return fallback_baseline(member_positions(members))


def _load_round_events(
    session: Session,
    *,
    ranking_id: int,
    month: date,
    members: Sequence[Any],
    rules: RankingRules,
    tz: tzinfo,
) -> list[RoundEvent]:
    start, end = month_range(month, tz)
    challenges = [
        challenge
        for challenge in list_month_challenges(
            session,
            ranking_id=ranking_id,
            start=to_naive_utc(start),
            end=to_naive_utc(end),
        )
        if resolve_challenge_status(ChallengeResultSource.from_challenge(challenge)) == ChallengeStatus.COMPLETED
    ]
    admin_created = admin_created_challenge_ids(
        session, challenge_ids=[challenge.id for challenge in challenges]
    )
    access_members = {member.user_id for member in members if member.is_access_challenge}

    events: list[RoundEvent] = []
    for index, challenge in enumerate(challenges):
        is_access = challenge.challenger_id in access_members
        events.append(
            RoundEvent(
                challenger_id=challenge.challenger_id,
                challenged_id=challenge.challenged_id,
                result=_event_result(challenge),
                challenge_id=challenge.id,
                is_access=is_access,
                access_limit=rules.access_threshold if is_access else None,
                ignore_rules=challenge.id in admin_created,
                challenger_snapshot=challenge.challenger_position_at_challenge,
                challenged_snapshot=challenge.challenged_position_at_challenge,
                played_at=as_utc(challenge.played_at or challenge.scheduled_for),
                source_index=index,
            )
        )
    return events


def _event_result(challenge: Any) -> EventResult | None:
    if challenge.challenger_walkover and challenge.challenged_walkover:
        return EventResult.DOUBLE_WALKOVER
    winner = resolve_challenge_winner(ChallengeResultSource.from_challenge(challenge))
    if winner == ChallengeWinner.CHALLENGER:
        return EventResult.CHALLENGER_WIN
    if winner == ChallengeWinner.CHALLENGED:
        return EventResult.CHALLENGER_LOSS
    return None


def _persist_close(
    session: Session,
    *,
    ranking_id: int,
    month: date,
    baseline: dict[int, int],
    final_positions: dict[int, int],
    log: Sequence[str],
    rules: RankingRules,
    tz: tzinfo,
    options: _CloseOptions,
    stamp: datetime,
) -> None:
    if options.persist_memberships:
        update_membership_positions(session, ranking_id=ranking_id, positions=final_positions, now=stamp)

    # start rows are only ever added, never rewritten by a close
    insert_snapshot_rows(
        session,
        ranking_id=ranking_id,
        round_month=month,
        snapshot_type=SnapshotType.START.value,
        positions=baseline,
    )
    replace_snapshot(
        session,
        ranking_id=ranking_id,
        round_month=month,
        snapshot_type=SnapshotType.END.value,
        positions=final_positions,
    )
    replace_round_logs(session, ranking_id=ranking_id, reference_month=month, lines=log)

    if options.close_status:
        close_rounds_for_month(
            session,
            ranking_id=ranking_id,
            reference_month=month,
            include_global=options.close_global,
            now=stamp,
            updated_by=options.acting_user_id,
        )

    if options.persist_memberships:
        evaluate_blue_points(
            session,
            ranking_id=ranking_id,
            month=month,
            positions_by_user=invert_positions(final_positions),
            rules=rules,
            tz=tz,
            now=stamp,
        )


def apply_manual_order(
    session_factory,
    ranking_id: int,
    ordered_user_ids: Sequence[int],
    *,
    reference_month: str | None = None,
    now: datetime | None = None,
) -> dict[int, int]:
    """Persist an admin-supplied order of the active members.

    Suspended members are appended after the ordered ones, keeping their
    relative order. With ``reference_month`` the month's start snapshot is
    rewritten to the new order and the manual-order marker is stored, so a
    later close of that month keeps going past violations.
    """
    month = parse_reference_month(reference_month) if reference_month is not None else None
    stamp = to_naive_utc(now or datetime.now(UTC))

    with session_factory() as session:
        try:
            if not lock_ranking(session, ranking_id, now=stamp):
                raise RankingNotFoundError(ranking_id)

            members = list_memberships(session, ranking_id=ranking_id)
            if not members:
                raise InvalidManualOrderError(f"ranking_id={ranking_id} has no members")
            positions = _manual_positions(members, ordered_user_ids)

            update_membership_positions(session, ranking_id=ranking_id, positions=positions, now=stamp)
            if month is not None:
                replace_snapshot(
                    session,
                    ranking_id=ranking_id,
                    round_month=month,
                    snapshot_type=SnapshotType.START.value,
                    positions=positions,
                )
                write_manual_order_marker(session, ranking_id=ranking_id, reference_month=month)
            session.commit()
        except (OperationalError, IntegrityError) as exc:
            session.rollback()
            raise RoundConflictError(
                f"Conflicting write while reordering ranking_id={ranking_id}; retry"
            ) from exc
        except Exception:
            session.rollback()
            raise

    logger.info(
        "Applied manual order ranking_id=%s players=%s month=%s",
        ranking_id,
        len(positions),
        format_month_value(month) if month is not None else "-",
    )
    return positions


def _manual_positions(members: Sequence[Any], ordered_user_ids: Sequence[int]) -> dict[int, int]:
    active_ids = {member.user_id for member in members if not member.is_suspended}
    suspended = sorted(
        (member for member in members if member.is_suspended),
        key=lambda member: member.position or 0,
    )

    if len(set(ordered_user_ids)) != len(ordered_user_ids):
        raise InvalidManualOrderError("Duplicate players in the new order")
    if len(ordered_user_ids) != len(active_ids):
        raise InvalidManualOrderError(
            f"Expected {len(active_ids)} active players, got {len(ordered_user_ids)}"
        )
    unknown = [user_id for user_id in ordered_user_ids if user_id not in active_ids]
    if unknown:
        raise InvalidManualOrderError(f"Players not active in the ranking: {unknown}")

    ordered = [*ordered_user_ids, *(member.user_id for member in suspended)]
    return {index: user_id for index, user_id in enumerate(ordered, start=1)}


__all__ = ["CloseRoundResult", "MANUAL_CLOSE_LOG_LINE", "apply_manual_order", "close_round"]
