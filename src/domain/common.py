"""Shared types for the ladder domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from domain.protocol import EventResult, ViolationCode


@dataclass(frozen=True)
class BaselineRow:
    """One player's slot in the ladder a round is replayed against."""

    user_id: int
    position: int
    name: str | None = None


@dataclass(frozen=True)
class RankedPlayer:
    user_id: int
    position: int
    name: str | None = None


@dataclass(frozen=True)
class RoundEvent:
    """Canonical challenge outcome payload consumed by the round processor."""

    challenger_id: int
    challenged_id: int
    result: EventResult | None
    challenge_id: int | None = None
    is_access: bool = False
    access_limit: int | None = None
    ignore_rules: bool = False
    challenger_snapshot: int | None = None
    challenged_snapshot: int | None = None
    played_at: datetime | None = None
    source_index: int | None = None


@dataclass(frozen=True)
class Violation:
    """A replayed challenge that broke a ladder rule."""

    code: ViolationCode
    challenge_id: int | None
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(frozen=True)
class MemberState:
    """Membership flags the eligibility and blue-point rules look at."""

    user_id: int
    position: int | None
    is_blue_point: bool = False
    is_locked: bool = False
    is_suspended: bool = False
    is_access_challenge: bool = False

    @classmethod
    def from_membership(cls, row: Any) -> MemberState:
        """Build from a membership row (anything with the flag attributes)."""
        return cls(
            user_id=int(row.user_id),
            position=row.position,
            is_blue_point=bool(row.is_blue_point),
            is_locked=bool(row.is_locked),
            is_suspended=bool(row.is_suspended),
            is_access_challenge=bool(row.is_access_challenge),
        )


__all__ = ["BaselineRow", "MemberState", "RankedPlayer", "RoundEvent", "Violation"]
