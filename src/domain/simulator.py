"""In-memory ladder simulator used to replay one round of challenges."""

from __future__ import annotations

import math
from collections.abc import Mapping

from domain.protocol import RankingMovement


class RankingSimulator:
    """Ordered list of player ids re-shuffled by challenge outcomes.

    Every operation tolerates stale or partial input by doing nothing; the
    simulator never raises and never leaves gaps in the order.
    """

    def __init__(self, baseline_positions: Mapping[int, int]) -> None:
        self._order: list[int] = []
        self._baseline: dict[int, int] = {}
        self._movement: dict[int, RankingMovement] = {}

        entries = sorted(
            (
                entry
                for entry in (
                    _coerce_entry(position, user_id)
                    for position, user_id in baseline_positions.items()
                )
                if entry is not None
            ),
            key=lambda item: item[0],
        )
        for position, user_id in entries:
            if user_id in self._baseline:
                continue
            self._order.append(user_id)
            self._baseline[user_id] = int(position)
            self._movement[user_id] = RankingMovement.STATIC

    def apply_victory(
        self,
        challenger_id: int,
        challenged_id: int,
        challenged_baseline_position: int,
    ) -> None:
        """Winner takes the loser's slot; the loser lands right below."""
        member_count = len(self._order)
        if member_count < 2 or challenger_id == challenged_id:
            return
        current_index = self._index_of(challenged_id)
        if self._index_of(challenger_id) == -1 or current_index == -1:
            return

        base_position = current_index + 1 if current_index >= 0 else challenged_baseline_position
        target_position = max(1, min(base_position, member_count - 1))

        self._remove(challenger_id)
        self._remove(challenged_id)
        self._insert_at(challenger_id, target_position)
        self._insert_at(challenged_id, target_position + 1)

        self._movement[challenger_id] = RankingMovement.RISE
        self._movement[challenged_id] = RankingMovement.DROP

    def apply_defeat(
        self,
        challenger_id: int,
        challenger_baseline_position: int,
        distance: int,
        member_count: int,
    ) -> None:
        current_index = self._index_of(challenger_id)
        if current_index == -1:
            return

        base_position = current_index + 1 if current_index >= 0 else challenger_baseline_position
        self._remove(challenger_id)
        target_position = max(1, min(base_position + distance, member_count))
        self._insert_at(challenger_id, target_position)
        self._movement[challenger_id] = RankingMovement.DROP

    def apply_penalty(self, user_id: int, positions_down: int, member_count: int) -> None:
        if positions_down <= 0:
            return
        current_index = self._index_of(user_id)
        if current_index == -1:
            return

        self._remove(user_id)
        limit = min(member_count, len(self._order) + 1)
        target_position = min(limit, current_index + 1 + positions_down)
        self._insert_at(user_id, target_position)
        self._movement[user_id] = RankingMovement.PENALTY

    def mark_defense_win(self, user_id: int) -> None:
        if user_id not in self._baseline:
            return
        # drop and penalty stick for the rest of the round
        current = self._movement.get(user_id, RankingMovement.STATIC)
        if current in (RankingMovement.DROP, RankingMovement.PENALTY):
            return
        self._movement[user_id] = RankingMovement.DEFENSE_WIN

    def result(self) -> dict[int, int]:
        """Final dense position -> user id mapping."""
        return {index + 1: user_id for index, user_id in enumerate(self._order)}

    def movement(self, user_id: int) -> RankingMovement | None:
        return self._movement.get(user_id)

    def movements(self) -> dict[int, RankingMovement]:
        return dict(self._movement)

    def baseline_position(self, user_id: int) -> int | None:
        return self._baseline.get(user_id)

    def tracked_entity_count(self) -> int:
        return len(self._order)

    def _remove(self, user_id: int) -> None:
        index = self._index_of(user_id)
        if index != -1:
            del self._order[index]

    def _insert_at(self, user_id: int, position: int) -> None:
        clamped = max(1, position)
        index = min(len(self._order), clamped - 1)
        self._order.insert(index, user_id)

    def _index_of(self, user_id: int) -> int:
        try:
            return self._order.index(user_id)
        except ValueError:
            return -1


def _coerce_entry(position: object, user_id: object) -> tuple[float, int] | None:
    try:
        position_value = float(position)  # type: ignore[arg-type]
        user_value = int(user_id)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(position_value) or user_value <= 0:
        return None
    return position_value, user_value


__all__ = ["RankingMovement", "RankingSimulator"]
