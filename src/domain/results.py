"""Derive challenge status and winner from recorded result evidence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from domain.protocol import ChallengeStatus, ChallengeWinner, UserResult


@dataclass(frozen=True)
class ChallengeResultSource:
    """Result fields of one challenge as stored."""

    winner: str | None = None
    status: str | None = None
    played_at: datetime | None = None
    challenger_games: int | None = None
    challenged_games: int | None = None
    challenger_walkover: bool | None = None
    challenged_walkover: bool | None = None

    @classmethod
    def from_challenge(cls, challenge: Any) -> ChallengeResultSource:
        """Build from any object exposing the challenge result attributes (ORM rows)."""
        return cls(
            winner=_enum_value(getattr(challenge, "winner", None)),
            status=_enum_value(getattr(challenge, "status", None)),
            played_at=getattr(challenge, "played_at", None),
            challenger_games=getattr(challenge, "challenger_games", None),
            challenged_games=getattr(challenge, "challenged_games", None),
            challenger_walkover=getattr(challenge, "challenger_walkover", None),
            challenged_walkover=getattr(challenge, "challenged_walkover", None),
        )


@dataclass(frozen=True)
class RecordedWinner:
    winner: ChallengeWinner


@dataclass(frozen=True)
class Walkover:
    challenger_walkover: bool
    challenged_walkover: bool

    @property
    def winner(self) -> ChallengeWinner | None:
        if self.challenger_walkover and self.challenged_walkover:
            return None
        if self.challenger_walkover:
            return ChallengeWinner.CHALLENGED
        return ChallengeWinner.CHALLENGER


@dataclass(frozen=True)
class GameCount:
    challenger_games: int
    challenged_games: int

    @property
    def winner(self) -> ChallengeWinner | None:
        if self.challenger_games > self.challenged_games:
            return ChallengeWinner.CHALLENGER
        if self.challenged_games > self.challenger_games:
            return ChallengeWinner.CHALLENGED
        return None


@dataclass(frozen=True)
class NoResult:
    winner: None = None


ChallengeOutcome = RecordedWinner | Walkover | GameCount | NoResult


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _parse_winner(value: str | None) -> ChallengeWinner | None:
    try:
        return ChallengeWinner(_enum_value(value))
    except ValueError:
        return None


def classify_outcome(source: ChallengeResultSource) -> ChallengeOutcome:
    """Pick the strongest piece of result evidence: stored winner, walkover, then games."""
    stored_winner = _parse_winner(source.winner)
    if stored_winner is not None:
        return RecordedWinner(stored_winner)

    challenger_walkover = bool(source.challenger_walkover)
    challenged_walkover = bool(source.challenged_walkover)
    if challenger_walkover or challenged_walkover:
        return Walkover(challenger_walkover, challenged_walkover)

    if source.challenger_games is not None and source.challenged_games is not None:
        return GameCount(source.challenger_games, source.challenged_games)

    return NoResult()


def resolve_challenge_winner(source: ChallengeResultSource) -> ChallengeWinner | None:
    return classify_outcome(source).winner


def has_result_evidence(source: ChallengeResultSource) -> bool:
    if resolve_challenge_winner(source) is not None:
        return True
    if source.played_at is not None:
        return True
    if source.challenger_games is not None or source.challenged_games is not None:
        return True
    return bool(source.challenger_walkover) or bool(source.challenged_walkover)


def resolve_challenge_status(source: ChallengeResultSource) -> ChallengeStatus:
    """Stored status, overridden to completed by any result evidence (cancelled always wins)."""
    status = _enum_value(source.status)
    if status == ChallengeStatus.CANCELLED.value:
        return ChallengeStatus.CANCELLED
    if status == ChallengeStatus.COMPLETED.value or has_result_evidence(source):
        return ChallengeStatus.COMPLETED
    if status == ChallengeStatus.ACCEPTED.value:
        return ChallengeStatus.ACCEPTED
    if status == ChallengeStatus.DECLINED.value:
        return ChallengeStatus.DECLINED
    return ChallengeStatus.SCHEDULED


def resolve_result_for_user(
    source: ChallengeResultSource,
    *,
    user_id: int,
    challenger_id: int,
    challenged_id: int,
) -> UserResult:
    winner = resolve_challenge_winner(source)
    if winner is None or user_id not in (challenger_id, challenged_id):
        return UserResult.PENDING

    if winner == ChallengeWinner.CHALLENGER:
        return UserResult.WIN if user_id == challenger_id else UserResult.LOSS
    return UserResult.WIN if user_id == challenged_id else UserResult.LOSS


__all__ = [
    "ChallengeOutcome",
    "ChallengeResultSource",
    "GameCount",
    "NoResult",
    "RecordedWinner",
    "Walkover",
    "classify_outcome",
    "has_result_evidence",
    "resolve_challenge_status",
    "resolve_challenge_winner",
    "resolve_result_for_user",
]
