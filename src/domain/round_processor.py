"""Replay one month of challenge outcomes against a baseline ladder."""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from domain.common import BaselineRow, RankedPlayer, RoundEvent, Violation
from domain.protocol import EventResult, ViolationCode
from domain.simulator import RankingSimulator

DEFAULT_MAX_POSITIONS_UP = 10
_NO_POSITION = sys.maxsize


@dataclass(frozen=True)
class RoundProcessingResult:
    ranking: list[RankedPlayer]
    log: list[str]
    violations: list[Violation]

    def positions(self) -> dict[int, int]:
        """Position -> user id."""
        return {player.position: player.user_id for player in self.ranking}


def normalize_baseline(rows: Sequence[BaselineRow]) -> list[BaselineRow]:
    """Sort by stored position and renumber densely from 1."""
    ordered = sorted(rows, key=lambda row: row.position or 0)
    return [
        BaselineRow(user_id=row.user_id, position=index, name=row.name)
        for index, row in enumerate(ordered, start=1)
    ]


def _top_position(event: RoundEvent, baseline_by_user: Mapping[int, int]) -> int:
    positions = [
        event.challenger_snapshot or baseline_by_user.get(event.challenger_id, 0),
        event.challenged_snapshot or baseline_by_user.get(event.challenged_id, 0),
    ]
    valid = [position for position in positions if position > 0]
    return min(valid) if valid else _NO_POSITION


def _player_name(names: Mapping[int, str | None], user_id: int) -> str:
    return names.get(user_id) or str(user_id)


def _match_label(event: RoundEvent, names: Mapping[int, str | None]) -> str:
    base = f"Challenge {event.challenge_id}" if event.challenge_id else "Challenge"
    challenger = _player_name(names, event.challenger_id)
    challenged = _player_name(names, event.challenged_id)
    return f"{base}: {challenger} x {challenged}"


def _build_log(
    events: Sequence[RoundEvent],
    names: Mapping[int, str | None],
    final_positions: Mapping[int, int],
) -> list[str]:
    lines: list[str] = []
    for event in events:
        challenger = _player_name(names, event.challenger_id)
        challenged = _player_name(names, event.challenged_id)
        if event.result == EventResult.CHALLENGER_WIN:
            lines.append(
                f"{challenger} beat {challenged}; took position "
                f"{final_positions.get(event.challenger_id, 0)}."
            )
        elif event.result == EventResult.CHALLENGER_LOSS:
            if event.is_access:
                lines.append(
                    f"Access challenge: {challenger} lost to {challenged} and went to the last position."
                )
            else:
                lines.append(
                    f"{challenger} lost to {challenged}; fell to position "
                    f"{final_positions.get(event.challenger_id, 0)}."
                )
        elif event.result == EventResult.DOUBLE_WALKOVER:
            lines.append(f"{challenger} and {challenged} had a double walkover; both fell one position.")
    return lines


def process_round(
    baseline_rows: Sequence[BaselineRow],
    events: Sequence[RoundEvent],
    max_positions_up: int,
) -> RoundProcessingResult:
    """Apply every valid event to the baseline and collect rule violations."""
    baseline = normalize_baseline(baseline_rows)
    if not baseline:
        return RoundProcessingResult(ranking=[], log=[], violations=[])

    names = {row.user_id: row.name for row in baseline}
    baseline_by_user = {row.user_id: row.position for row in baseline}
    member_count = len(baseline)
    max_standard = max_positions_up if max_positions_up > 0 else DEFAULT_MAX_POSITIONS_UP

    violations: list[Violation] = []
    accepted: list[tuple[int, float, int, RoundEvent]] = []
    logged_events: list[RoundEvent] = []
    seen_challenges: set[int] = set()

    for index, event in enumerate(events):
        if event.challenge_id is not None:
            if event.challenge_id in seen_challenges:
                continue
            seen_challenges.add(event.challenge_id)

        if not event.challenger_id or not event.challenged_id or event.result is None:
            violations.append(
                Violation(
                    code=ViolationCode.INCOMPLETE_DATA,
                    challenge_id=event.challenge_id,
                    message=f"challenge {event.challenge_id or 'without id'} has incomplete data.",
                )
            )
            continue

        played_at_value = event.played_at.timestamp() if event.played_at is not None else 0.0
        source_index = event.source_index if event.source_index is not None else index
        accepted.append((_top_position(event, baseline_by_user), played_at_value, source_index, event))
        logged_events.append(event)

    accepted.sort(key=lambda item: (item[0], item[1], item[2]))
    ordered_events = [item[3] for item in accepted]

    simulator = RankingSimulator({row.position: row.user_id for row in baseline})

    for event in ordered_events:
        challenger_id = event.challenger_id
        challenged_id = event.challenged_id
        challenger_baseline = baseline_by_user.get(challenger_id)
        challenged_baseline = baseline_by_user.get(challenged_id)

        if not challenger_baseline or not challenged_baseline:
            violations.append(
                Violation(
                    code=ViolationCode.PLAYER_NOT_FOUND,
                    challenge_id=event.challenge_id,
                    message=f"{_match_label(event, names)} is not in the baseline ranking.",
                )
            )
            continue

        challenger_snapshot = event.challenger_snapshot or challenger_baseline
        challenged_snapshot = event.challenged_snapshot or challenged_baseline

        # stale snapshot positions lose to a valid baseline order
        baseline_order_valid = challenger_baseline > challenged_baseline
        has_snapshot = bool(event.challenger_snapshot or event.challenged_snapshot)
        if challenger_snapshot <= challenged_snapshot and baseline_order_valid and has_snapshot:
            challenger_snapshot = challenger_baseline
            challenged_snapshot = challenged_baseline

        if challenger_snapshot <= challenged_snapshot:
            violations.append(
                Violation(
                    code=ViolationCode.INVALID_CHALLENGE_ORDER,
                    challenge_id=event.challenge_id,
                    message=(
                        f"{_match_label(event, names)} "
                        f"(positions {challenger_snapshot} x {challenged_snapshot})."
                    ),
                )
            )
            continue

        distance = challenger_snapshot - challenged_snapshot

        if not event.ignore_rules:
            if event.is_access and event.access_limit and challenged_snapshot < event.access_limit:
                violations.append(
                    Violation(
                        code=ViolationCode.ACCESS_OUT_OF_RANGE,
                        challenge_id=event.challenge_id,
                        message=f"{_match_label(event, names)} (limit {event.access_limit}).",
                    )
                )
                continue

            if not event.is_access and distance > max_standard:
                violations.append(
                    Violation(
                        code=ViolationCode.MAX_POSITIONS_UP,
                        challenge_id=event.challenge_id,
                        message=(
                            f"{_match_label(event, names)} "
                            f"({distance} positions up; limit {max_standard})."
                        ),
                    )
                )
                continue

        if event.result == EventResult.DOUBLE_WALKOVER:
            simulator.apply_penalty(challenger_id, 1, member_count)
            simulator.apply_penalty(challenged_id, 1, member_count)
        elif event.result == EventResult.CHALLENGER_WIN:
            simulator.apply_victory(challenger_id, challenged_id, challenged_snapshot)
        elif event.result == EventResult.CHALLENGER_LOSS:
            if event.is_access:
                simulator.apply_penalty(challenger_id, member_count, member_count)
            else:
                simulator.apply_defeat(challenger_id, challenger_snapshot, max(1, distance), member_count)
            simulator.mark_defense_win(challenged_id)

    final_positions = simulator.result()
    ranking = [
        RankedPlayer(user_id=user_id, position=position, name=names.get(user_id))
        for position, user_id in final_positions.items()
    ]
    position_by_user = {player.user_id: player.position for player in ranking}
    log = _build_log(logged_events, names, position_by_user)

    return RoundProcessingResult(
        ranking=ranking,
        log=log,
        violations=list(dict.fromkeys(violations)),
    )


__all__ = ["RoundProcessingResult", "normalize_baseline", "process_round"]
