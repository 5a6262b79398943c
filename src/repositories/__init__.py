"""Database repository helpers."""

from repositories.rankings import (
    get_ranking,
    get_ranking_by_slug,
    list_memberships,
    list_rankings,
    lock_ranking,
)
from repositories.rounds import find_round, list_open_rounds, list_round_logs
from repositories.schema import ensure_ladder_schema
from repositories.snapshots import fetch_snapshot, snapshot_exists

__all__ = [
    "ensure_ladder_schema",
    "fetch_snapshot",
    "find_round",
    "get_ranking",
    "get_ranking_by_slug",
    "list_memberships",
    "list_open_rounds",
    "list_rankings",
    "list_round_logs",
    "lock_ranking",
    "snapshot_exists",
]
