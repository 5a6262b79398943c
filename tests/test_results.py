"""Tests for deriving challenge winners and statuses from result evidence."""

from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

from domain.protocol import ChallengeStatus, ChallengeWinner, UserResult
from domain.results import (
    ChallengeResultSource,
    GameCount,
    NoResult,
    RecordedWinner,
    Walkover,
    classify_outcome,
    has_result_evidence,
    resolve_challenge_status,
    resolve_challenge_winner,
    resolve_result_for_user,
)


def test_challenger_walkover_gives_the_win_to_challenged() -> None:
    source = ChallengeResultSource(winner=None, challenger_walkover=True, challenged_walkover=False)
    assert resolve_challenge_winner(source) is ChallengeWinner.CHALLENGED


def test_challenged_walkover_gives_the_win_to_challenger() -> None:
    source = ChallengeResultSource(challenged_walkover=True)
    assert resolve_challenge_winner(source) is ChallengeWinner.CHALLENGER


def test_double_walkover_has_no_winner() -> None:
    source = ChallengeResultSource(challenger_walkover=True, challenged_walkover=True)
    assert resolve_challenge_winner(source) is None
    assert resolve_challenge_status(source) is ChallengeStatus.COMPLETED


def test_more_games_wins() -> None:
    source = ChallengeResultSource(winner=None, challenger_games=6, challenged_games=3)
    assert resolve_challenge_winner(source) is ChallengeWinner.CHALLENGER


def test_equal_games_have_no_winner_and_status_stays_derived() -> None:
    source = ChallengeResultSource(status="accepted", challenger_games=4, challenged_games=4)
    assert resolve_challenge_winner(source) is None
    assert resolve_challenge_status(source) is ChallengeStatus.COMPLETED

    no_games = ChallengeResultSource(status="accepted")
    assert resolve_challenge_status(no_games) is ChallengeStatus.ACCEPTED


def test_stored_winner_beats_walkover_and_games() -> None:
    source = ChallengeResultSource(
        winner="challenged",
        challenged_walkover=True,
        challenger_games=6,
        challenged_games=0,
    )
    assert resolve_challenge_winner(source) is ChallengeWinner.CHALLENGED
    assert isinstance(classify_outcome(source), RecordedWinner)


def test_classify_outcome_precedence() -> None:
    assert isinstance(classify_outcome(ChallengeResultSource(challenger_walkover=True)), Walkover)
    assert isinstance(
        classify_outcome(ChallengeResultSource(challenger_games=1, challenged_games=0)), GameCount
    )
    assert isinstance(classify_outcome(ChallengeResultSource(challenger_games=1)), NoResult)
    assert isinstance(classify_outcome(ChallengeResultSource(winner="nobody")), NoResult)


def test_cancelled_wins_over_result_evidence() -> None:
    source = ChallengeResultSource(status="cancelled", winner="challenger", challenger_games=6)
    assert resolve_challenge_status(source) is ChallengeStatus.CANCELLED


def test_evidence_marks_scheduled_challenge_completed() -> None:
    source = ChallengeResultSource(status="scheduled", played_at=datetime(2025, 3, 3, 12, 0))
    assert has_result_evidence(source)
    assert resolve_challenge_status(source) is ChallengeStatus.COMPLETED

    pending = ChallengeResultSource(status="scheduled")
    assert not has_result_evidence(pending)
    assert resolve_challenge_status(pending) is ChallengeStatus.SCHEDULED


def test_from_challenge_reads_orm_like_objects() -> None:
    row = SimpleNamespace(
        winner=ChallengeWinner.CHALLENGER,
        status="completed",
        played_at=None,
        challenger_games=None,
        challenged_games=None,
        challenger_walkover=False,
        challenged_walkover=False,
    )
    source = ChallengeResultSource.from_challenge(row)
    assert source.winner == "challenger"
    assert resolve_challenge_winner(source) is ChallengeWinner.CHALLENGER


def test_result_for_each_side() -> None:
    source = ChallengeResultSource(challenger_games=6, challenged_games=2)
    assert resolve_result_for_user(source, user_id=1, challenger_id=1, challenged_id=2) is UserResult.WIN
    assert resolve_result_for_user(source, user_id=2, challenger_id=1, challenged_id=2) is UserResult.LOSS
    assert resolve_result_for_user(source, user_id=3, challenger_id=1, challenged_id=2) is UserResult.PENDING

    undecided = ChallengeResultSource(challenger_games=2, challenged_games=2)
    assert resolve_result_for_user(undecided, user_id=1, challenger_id=1, challenged_id=2) is UserResult.PENDING
