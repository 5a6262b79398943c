"""Unit tests for the in-memory ladder simulator."""

from __future__ import annotations

import random

import pytest

from domain.protocol import RankingMovement
from domain.simulator import RankingSimulator


def _three_players() -> RankingSimulator:
    return RankingSimulator({1: 10, 2: 20, 3: 30})


def test_victory_swaps_winner_into_loser_slot() -> None:
    simulator = _three_players()
    simulator.apply_victory(30, 20, 2)

    assert simulator.result() == {1: 10, 2: 30, 3: 20}
    assert simulator.movement(30) is RankingMovement.RISE
    assert simulator.movement(20) is RankingMovement.DROP
    assert simulator.movement(10) is RankingMovement.STATIC


def test_victory_against_leader_takes_first_place() -> None:
    simulator = _three_players()
    simulator.apply_victory(20, 10, 1)
    assert simulator.result() == {1: 20, 2: 10, 3: 30}


def test_victory_never_pushes_loser_off_the_bottom() -> None:
    simulator = _three_players()
    simulator.apply_victory(10, 30, 3)
    assert simulator.result() == {1: 20, 2: 10, 3: 30}


def test_victory_is_noop_for_unknown_players_or_tiny_ladders() -> None:
    simulator = _three_players()
    simulator.apply_victory(99, 20, 2)
    assert simulator.result() == {1: 10, 2: 20, 3: 30}

    solo = RankingSimulator({1: 10})
    solo.apply_victory(10, 10, 1)
    assert solo.result() == {1: 10}


def test_defeat_clamps_to_last_position() -> None:
    simulator = _three_players()
    simulator.apply_defeat(10, 1, 5, 3)

    assert simulator.result() == {1: 20, 2: 30, 3: 10}
    assert simulator.movement(10) is RankingMovement.DROP


def test_defeat_for_unknown_player_is_noop() -> None:
    simulator = _three_players()
    simulator.apply_defeat(99, 1, 1, 3)
    assert simulator.result() == {1: 10, 2: 20, 3: 30}


def test_penalty_moves_player_down() -> None:
    simulator = _three_players()
    simulator.apply_penalty(10, 1, 3)

    assert simulator.result() == {1: 20, 2: 10, 3: 30}
    assert simulator.movement(10) is RankingMovement.PENALTY


def test_penalty_with_non_positive_distance_is_noop() -> None:
    simulator = _three_players()
    simulator.apply_penalty(10, 0, 3)
    simulator.apply_penalty(10, -2, 3)
    assert simulator.result() == {1: 10, 2: 20, 3: 30}
    assert simulator.movement(10) is RankingMovement.STATIC


def test_drop_is_sticky_against_later_defense_win() -> None:
    simulator = _three_players()
    simulator.apply_defeat(10, 1, 1, 3)
    simulator.mark_defense_win(10)
    assert simulator.movement(10) is RankingMovement.DROP


def test_penalty_is_sticky_against_later_defense_win() -> None:
    simulator = _three_players()
    simulator.apply_penalty(20, 1, 3)
    simulator.mark_defense_win(20)
    assert simulator.movement(20) is RankingMovement.PENALTY


def test_defense_win_marks_static_player_and_ignores_strangers() -> None:
    simulator = _three_players()
    simulator.mark_defense_win(10)
    simulator.mark_defense_win(99)

    assert simulator.movement(10) is RankingMovement.DEFENSE_WIN
    assert simulator.movement(99) is None


def test_constructor_skips_invalid_and_duplicate_entries() -> None:
    simulator = RankingSimulator({1: 10, 2: 10, 3: 0, float("nan"): 40, 5: 50})

    assert simulator.result() == {1: 10, 2: 50}
    assert simulator.baseline_position(50) == 5
    assert simulator.tracked_entity_count() == 2


def test_constructor_sorts_by_baseline_position() -> None:
    simulator = RankingSimulator({3: 30, 1: 10, 2: 20})
    assert simulator.result() == {1: 10, 2: 20, 3: 30}


@pytest.mark.parametrize("seed", range(25))
def test_positions_stay_dense_after_random_operations(seed: int) -> None:
    rng = random.Random(seed)
    player_ids = list(range(101, 101 + rng.randint(2, 12)))
    member_count = len(player_ids)
    simulator = RankingSimulator({index: user_id for index, user_id in enumerate(player_ids, start=1)})

    for _ in range(60):
        operation = rng.choice(("victory", "defeat", "penalty", "defense"))
        first = rng.choice(player_ids + [999])
        second = rng.choice(player_ids)
        if operation == "victory":
            simulator.apply_victory(first, second, rng.randint(1, member_count))
        elif operation == "defeat":
            simulator.apply_defeat(first, rng.randint(1, member_count), rng.randint(0, 20), member_count)
        elif operation == "penalty":
            simulator.apply_penalty(first, rng.randint(-1, 20), member_count)
        else:
            simulator.mark_defense_win(first)

    result = simulator.result()
    assert sorted(result) == list(range(1, member_count + 1))
    assert sorted(result.values()) == player_ids
