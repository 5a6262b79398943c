"""users table model."""

from __future__ import annotations

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.mixins import CreatedAtMixin


class User(CreatedAtMixin, Base):
    """Club member; only the fields the ladder engine reads."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    nickname: Mapped[str | None] = mapped_column(String(120), nullable=True)
    role: Mapped[str] = mapped_column(
        Enum("admin", "collaborator", "player", name="user_role", native_enum=False),
        nullable=False,
        default="player",
    )

    @property
    def display_name(self) -> str:
        nickname = (self.nickname or "").strip()
        if nickname:
            return nickname
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full_name or f"Player {self.id}"
