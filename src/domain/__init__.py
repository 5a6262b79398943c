"""Ladder rules engine: windows, simulator, round closing and rollover."""

from domain.common import BaselineRow, MemberState, RankedPlayer, RoundEvent, Violation
from domain.protocol import (
    ChallengeStatus,
    ChallengeWinner,
    EventResult,
    RankingMovement,
    RoundStatus,
    SnapshotType,
    UserResult,
    ViolationCode,
    WindowPhase,
)

__all__ = [
    "BaselineRow",
    "ChallengeStatus",
    "ChallengeWinner",
    "EventResult",
    "MemberState",
    "RankedPlayer",
    "RankingMovement",
    "RoundEvent",
    "RoundStatus",
    "SnapshotType",
    "UserResult",
    "Violation",
    "ViolationCode",
    "WindowPhase",
]
