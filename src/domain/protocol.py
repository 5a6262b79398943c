"""Shared enums for the ladder domain."""

from __future__ import annotations

from enum import Enum


class ChallengeStatus(str, Enum):
    """Lifecycle of one scheduled challenge."""

    SCHEDULED = "scheduled"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ChallengeWinner(str, Enum):
    """Which side of a challenge won."""

    CHALLENGER = "challenger"
    CHALLENGED = "challenged"


class UserResult(str, Enum):
    """A challenge outcome seen from one participant."""

    WIN = "win"
    LOSS = "loss"
    PENDING = "pending"


class RoundStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class SnapshotType(str, Enum):
    START = "start"
    END = "end"


class WindowPhase(str, Enum):
    """Challenge window phases, in the order they are evaluated."""

    BEFORE = "before"
    CLOSED = "closed"
    WAITING_BLUE = "waiting_blue"
    BLUE = "blue"
    WAITING_OPEN = "waiting_open"
    AFTER_OPEN = "after_open"
    OPEN = "open"


class RankingMovement(str, Enum):
    """How a player moved while a round was replayed."""

    STATIC = "static"
    RISE = "rise"
    DROP = "drop"
    PENALTY = "penalty"
    DEFENSE_WIN = "defense_win"


class EventResult(str, Enum):
    """Outcome kinds fed to the round processor."""

    CHALLENGER_WIN = "challenger_win"
    CHALLENGER_LOSS = "challenger_loss"
    DOUBLE_WALKOVER = "double_wo"


class ViolationCode(str, Enum):
    INCOMPLETE_DATA = "INCOMPLETE_DATA"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    INVALID_CHALLENGE_ORDER = "INVALID_CHALLENGE_ORDER"
    ACCESS_OUT_OF_RANGE = "ACCESS_OUT_OF_RANGE"
    MAX_POSITIONS_UP = "MAX_POSITIONS_UP"


__all__ = [
    "ChallengeStatus",
    "ChallengeWinner",
    "EventResult",
    "RankingMovement",
    "RoundStatus",
    "SnapshotType",
    "UserResult",
    "ViolationCode",
    "WindowPhase",
]
