"""ranking_memberships table model."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.mixins import TimestampMixin


class RankingMembership(TimestampMixin, Base):
    """A player's slot and flags inside one ranking."""

    __tablename__ = "ranking_memberships"
    __table_args__ = (
        UniqueConstraint("ranking_id", "user_id", name="uq_ranking_memberships_ranking_user"),
        Index("idx_ranking_memberships_ranking_position", "ranking_id", "position"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ranking_id: Mapped[int] = mapped_column(ForeignKey("rankings.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_blue_point: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_suspended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_access_challenge: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
