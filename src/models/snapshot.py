"""ranking_snapshots and round_logs table models."""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Enum, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.mixins import CreatedAtMixin


class RankingSnapshot(CreatedAtMixin, Base):
    """Frozen ladder positions at the start or end of a month."""

    __tablename__ = "ranking_snapshots"
    __table_args__ = (
        UniqueConstraint(
            "ranking_id",
            "round_month",
            "snapshot_type",
            "user_id",
            name="uq_ranking_snapshots_identity",
        ),
        Index("idx_ranking_snapshots_lookup", "ranking_id", "round_month", "snapshot_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ranking_id: Mapped[int] = mapped_column(ForeignKey("rankings.id"), nullable=False)
    round_month: Mapped[date] = mapped_column(Date, nullable=False)
    snapshot_type: Mapped[str] = mapped_column(
        Enum("start", "end", name="snapshot_type", native_enum=False),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class RoundLog(CreatedAtMixin, Base):
    """Explanatory log lines written when a ranking's month is closed."""

    __tablename__ = "round_logs"
    __table_args__ = (Index("idx_round_logs_ranking_month", "ranking_id", "reference_month"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ranking_id: Mapped[int] = mapped_column(ForeignKey("rankings.id"), nullable=False)
    reference_month: Mapped[date] = mapped_column(Date, nullable=False)
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
