"""Tests for storing and restoring ranking snapshots."""

from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import select

from domain.errors import SnapshotNotFoundError
from domain.protocol import SnapshotType
from domain.round_closer import close_round
from domain.snapshots import ensure_baseline_snapshot, restore_snapshot
from models import RankingSnapshot
from repositories.rankings import list_memberships
from repositories.snapshots import fetch_snapshot, insert_snapshot_rows

MARCH = date(2025, 3, 1)
NOW = datetime(2025, 4, 1, 12, 0)


def _ladder(session_factory, ranking_id: int) -> list[int]:
    with session_factory() as session:
        return [member.user_id for member in list_memberships(session, ranking_id=ranking_id)]


@pytest.fixture
def closed_march(session_factory, seed, ladder_config):
    ranking_id = seed.ranking()
    users = seed.players(ranking_id, ["Ana", "Bia", "Caio"])
    seed.challenge(ranking_id, users[2], users[1], played_at=datetime(2025, 3, 10, 12, 0), winner="challenger")
    close_round(session_factory, ranking_id, "2025-03", None, config=ladder_config, now=NOW)
    return ranking_id, users


def test_restore_start_snapshot(session_factory, closed_march) -> None:
    ranking_id, (u1, u2, u3) = closed_march
    assert _ladder(session_factory, ranking_id) == [u1, u3, u2]

    restored = restore_snapshot(session_factory, ranking_id, "2025-03", now=NOW)

    assert restored.snapshot_type is SnapshotType.START
    assert restored.positions == {1: u1, 2: u2, 3: u3}
    assert _ladder(session_factory, ranking_id) == [u1, u2, u3]


def test_restore_prefers_end_snapshot_when_asked(session_factory, closed_march) -> None:
    ranking_id, (u1, u2, u3) = closed_march
    restore_snapshot(session_factory, ranking_id, "2025-03", now=NOW)

    restored = restore_snapshot(session_factory, ranking_id, "2025-03", prefer_end_snapshot=True, now=NOW)

    assert restored.snapshot_type is SnapshotType.END
    assert _ladder(session_factory, ranking_id) == [u1, u3, u2]


def test_dry_run_restore_leaves_memberships(session_factory, closed_march) -> None:
    ranking_id, (u1, u2, u3) = closed_march

    restored = restore_snapshot(
        session_factory, ranking_id, "2025-03", persist_memberships=False, now=NOW
    )

    assert restored.positions == {1: u1, 2: u2, 3: u3}
    assert _ladder(session_factory, ranking_id) == [u1, u3, u2]


def test_end_preference_falls_back_to_start(session_factory, seed) -> None:
    ranking_id = seed.ranking()
    u1, u2 = seed.players(ranking_id, ["Ana", "Bia"])
    with session_factory() as session:
        insert_snapshot_rows(
            session,
            ranking_id=ranking_id,
            round_month=MARCH,
            snapshot_type="start",
            positions={1: u2, 2: u1},
        )
        session.commit()

    restored = restore_snapshot(session_factory, ranking_id, "2025-03", prefer_end_snapshot=True, now=NOW)

    assert restored.snapshot_type is SnapshotType.START
    assert _ladder(session_factory, ranking_id) == [u2, u1]


def test_missing_snapshot_raises(session_factory, seed) -> None:
    ranking_id = seed.ranking()
    seed.players(ranking_id, ["Ana"])

    with pytest.raises(SnapshotNotFoundError):
        restore_snapshot(session_factory, ranking_id, "2025-03", now=NOW)


def test_ensure_baseline_snapshot_writes_once(session_factory, seed) -> None:
    ranking_id = seed.ranking()
    u1, u2 = seed.players(ranking_id, ["Ana", "Bia"])

    with session_factory() as session:
        assert ensure_baseline_snapshot(session, ranking_id=ranking_id, month=MARCH)
        assert not ensure_baseline_snapshot(session, ranking_id=ranking_id, month=MARCH)
        session.commit()

    with session_factory() as session:
        assert fetch_snapshot(
            session, ranking_id=ranking_id, round_month=MARCH, snapshot_type="start"
        ) == {1: u1, 2: u2}


def test_snapshot_insert_skips_existing_users(session_factory, seed) -> None:
    ranking_id = seed.ranking()
    u1, u2 = seed.players(ranking_id, ["Ana", "Bia"])

    with session_factory() as session:
        insert_snapshot_rows(
            session, ranking_id=ranking_id, round_month=MARCH, snapshot_type="start", positions={1: u1}
        )
        insert_snapshot_rows(
            session,
            ranking_id=ranking_id,
            round_month=MARCH,
            snapshot_type="start",
            positions={1: u2, 2: u1},
        )
        session.commit()

    with session_factory() as session:
        rows = session.execute(
            select(RankingSnapshot.user_id, RankingSnapshot.position).where(
                RankingSnapshot.ranking_id == ranking_id
            )
        ).all()
    # the first stored row for a user wins
    assert {row.user_id: row.position for row in rows} == {u1: 1, u2: 1}
