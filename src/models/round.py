"""rounds table model."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.mixins import TimestampMixin


class Round(TimestampMixin, Base):
    """Monthly challenge round, scoped to one ranking or global when ranking_id is NULL."""

    __tablename__ = "rounds"
    __table_args__ = (
        Index("idx_rounds_ranking_status_month", "ranking_id", "status", "reference_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ranking_id: Mapped[int | None] = mapped_column(ForeignKey("rankings.id"), nullable=True)
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    reference_month: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum("open", "closed", name="round_status", native_enum=False),
        nullable=False,
        default="open",
    )
    round_opens_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    blue_point_opens_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    blue_point_closes_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    open_challenges_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    open_challenges_end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    matches_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
