"""Shared fixtures: a file-backed SQLite database and row seeding helpers."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db import create_db_engine, create_session_factory
from domain.config import LadderConfig
from models import (
    Challenge,
    ChallengeEvent,
    Ranking,
    RankingMembership,
    Round,
    User,
)
from repositories.schema import ensure_ladder_schema


class LadderSeeder:
    """Insert rows through short committed sessions and return their ids."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def _add(self, row: Any) -> int:
        with self.session_factory() as session:
            session.add(row)
            session.commit()
            return int(row.id)

    def ranking(self, slug: str = "ranking-masculino", name: str | None = None) -> int:
        return self._add(Ranking(name=name or slug, slug=slug, is_active=True))

    def user(self, nickname: str, *, role: str = "player") -> int:
        return self._add(User(nickname=nickname, role=role))

    def players(self, ranking_id: int, nicknames: Sequence[str], **flags: bool) -> list[int]:
        """Create users and memberships in the given order (positions 1..n)."""
        user_ids = []
        for position, nickname in enumerate(nicknames, start=1):
            user_id = self.user(nickname)
            self.member(ranking_id, user_id, position, **flags)
            user_ids.append(user_id)
        return user_ids

    def member(self, ranking_id: int, user_id: int, position: int | None, **flags: bool) -> int:
        return self._add(
            RankingMembership(ranking_id=ranking_id, user_id=user_id, position=position, **flags)
        )

    def round(
        self,
        ranking_id: int | None,
        reference_month: date,
        *,
        status: str = "open",
        title: str = "Round",
        **timestamps: datetime | None,
    ) -> int:
        return self._add(
            Round(
                ranking_id=ranking_id,
                reference_month=reference_month,
                status=status,
                title=title,
                **timestamps,
            )
        )

    def challenge(
        self,
        ranking_id: int,
        challenger_id: int,
        challenged_id: int,
        *,
        played_at: datetime | None,
        scheduled_for: datetime | None = None,
        status: str = "completed",
        winner: str | None = None,
        **fields: Any,
    ) -> int:
        return self._add(
            Challenge(
                ranking_id=ranking_id,
                challenger_id=challenger_id,
                challenged_id=challenged_id,
                status=status,
                winner=winner,
                played_at=played_at,
                scheduled_for=scheduled_for or played_at,
                **fields,
            )
        )

    def challenge_event(self, challenge_id: int, user_id: int, event_type: str = "created") -> int:
        return self._add(ChallengeEvent(challenge_id=challenge_id, user_id=user_id, event_type=event_type))


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ladder.db'}")
    ensure_ladder_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def seed(session_factory: sessionmaker[Session]) -> LadderSeeder:
    return LadderSeeder(session_factory)


@pytest.fixture
def ladder_config() -> LadderConfig:
    return LadderConfig()
