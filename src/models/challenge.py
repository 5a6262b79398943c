"""challenges and challenge_events table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.mixins import CreatedAtMixin


class Challenge(CreatedAtMixin, Base):
    """A scheduled match between two members of one ranking.

    ``status`` and ``winner`` are stored as entered; readers derive the
    effective values through ``domain.results``.
    """

    __tablename__ = "challenges"
    __table_args__ = (
        Index("idx_challenges_ranking_played", "ranking_id", "played_at"),
        Index("idx_challenges_ranking_scheduled", "ranking_id", "scheduled_for"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ranking_id: Mapped[int] = mapped_column(ForeignKey("rankings.id"), nullable=False)
    challenger_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    challenged_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(
            "scheduled",
            "accepted",
            "declined",
            "completed",
            "cancelled",
            name="challenge_status",
            native_enum=False,
        ),
        nullable=False,
        default="scheduled",
    )
    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    played_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    challenger_games: Mapped[int | None] = mapped_column(Integer, nullable=True)
    challenged_games: Mapped[int | None] = mapped_column(Integer, nullable=True)
    challenger_walkover: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    challenged_walkover: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    winner: Mapped[str | None] = mapped_column(
        Enum("challenger", "challenged", name="challenge_winner", native_enum=False),
        nullable=True,
    )
    challenger_position_at_challenge: Mapped[int | None] = mapped_column(Integer, nullable=True)
    challenged_position_at_challenge: Mapped[int | None] = mapped_column(Integer, nullable=True)


class ChallengeEvent(CreatedAtMixin, Base):
    """Audit trail of actions taken on a challenge."""

    __tablename__ = "challenge_events"
    __table_args__ = (Index("idx_challenge_events_challenge", "challenge_id", "event_type"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(ForeignKey("challenges.id"), nullable=False)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
