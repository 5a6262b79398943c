"""Exceptions raised by the ladder services."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.common import Violation


class LadderError(Exception):
    """Base class for ladder service failures."""


class InvalidReferenceMonthError(LadderError, ValueError):
    """A reference month string could not be parsed or is out of order."""


class RankingNotFoundError(LadderError, LookupError):
    def __init__(self, ranking_id: int) -> None:
        super().__init__(f"ranking_id={ranking_id} not found")
        self.ranking_id = ranking_id


class SnapshotNotFoundError(LadderError, LookupError):
    def __init__(self, ranking_id: int, reference_month: str) -> None:
        super().__init__(
            f"No ranking snapshot stored for ranking_id={ranking_id} month={reference_month}"
        )
        self.ranking_id = ranking_id
        self.reference_month = reference_month


class InvalidManualOrderError(LadderError, ValueError):
    """An admin-supplied ordering does not match the ranking's active members."""


class RoundConflictError(LadderError):
    """A concurrent write collided with this one; the caller should retry."""


class RecalculationFailedError(LadderError):
    """Rollover aborted because one or more rankings reported violations."""

    def __init__(self, violations_by_ranking: Mapping[int, Sequence[Violation]]) -> None:
        self.violations_by_ranking = {
            ranking_id: list(items) for ranking_id, items in violations_by_ranking.items()
        }
        summary = " | ".join(
            f"ranking {ranking_id}: " + ", ".join(violation.message for violation in items)
            for ranking_id, items in self.violations_by_ranking.items()
        )
        super().__init__(f"Ranking recalculation failed. {summary}")


__all__ = [
    "InvalidManualOrderError",
    "InvalidReferenceMonthError",
    "LadderError",
    "RankingNotFoundError",
    "RecalculationFailedError",
    "RoundConflictError",
    "SnapshotNotFoundError",
]
