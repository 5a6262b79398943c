#!/usr/bin/env python3
"""Show a ranking's current ladder, or a stored snapshot of it."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory
from domain.dates import parse_reference_month
from domain.errors import InvalidReferenceMonthError
from domain.protocol import SnapshotType
from repositories.rankings import fetch_member_names, get_ranking, get_ranking_by_slug, list_memberships
from repositories.rounds import list_round_logs
from repositories.snapshots import fetch_snapshot

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Print a ranking ladder.",
)


def _flags(member) -> str:
    flags = []
    if member.is_blue_point:
        flags.append("blue")
    if member.is_locked:
        flags.append("locked")
    if member.is_suspended:
        flags.append("suspended")
    if member.is_access_challenge:
        flags.append("access")
    return ",".join(flags)


@app.command()
def show_ranking(
    ranking: Annotated[str, typer.Argument(help="Ranking id or slug.")],
    month: Annotated[
        str | None,
        typer.Option("--month", help="Show the stored snapshot of this month (YYYY-MM) instead."),
    ] = None,
    snapshot_type: Annotated[
        SnapshotType,
        typer.Option("--snapshot", help="Snapshot type used with --month."),
    ] = SnapshotType.END,
    show_log: Annotated[
        bool,
        typer.Option("--log", help="Also print the month's close log (requires --month)."),
    ] = False,
    db_url: Annotated[
        str,
        typer.Option("--db-url", help="Database URL. Defaults to the local clubladder postgres instance."),
    ] = DEFAULT_DB_URL,
) -> None:
    """Print positions, names and membership flags."""
    try:
        month_value = parse_reference_month(month) if month is not None else None
    except InvalidReferenceMonthError as exc:
        raise typer.BadParameter(str(exc), param_hint="--month") from exc

    session_factory = create_session_factory(create_db_engine(db_url))
    with session_factory() as session:
        row = get_ranking(session, int(ranking)) if ranking.isdigit() else get_ranking_by_slug(session, ranking)
        if row is None:
            typer.echo(f"ranking {ranking!r} not found", err=True)
            raise typer.Exit(code=1)

        typer.echo(f"{row.name} (id={row.id}, slug={row.slug})")
        if month_value is None:
            members = list_memberships(session, ranking_id=row.id)
            names = fetch_member_names(session, user_ids=[member.user_id for member in members])
            for member in members:
                position = f"{member.position:3d}" if member.position is not None else "  -"
                typer.echo(
                    f"{position}. {names.get(member.user_id, member.user_id)!s:<24} "
                    f"user_id={member.user_id:<6d} {_flags(member)}"
                )
            return

        positions = fetch_snapshot(
            session,
            ranking_id=row.id,
            round_month=month_value,
            snapshot_type=snapshot_type.value,
        )
        if not positions:
            typer.echo(f"no {snapshot_type.value} snapshot for {month}", err=True)
            raise typer.Exit(code=1)
        names = fetch_member_names(session, user_ids=list(positions.values()))
        for position, user_id in sorted(positions.items()):
            typer.echo(f"{position:3d}. {names.get(user_id, user_id)!s:<24} user_id={user_id}")

        if show_log:
            typer.echo("")
            for log_row in list_round_logs(session, ranking_id=row.id, reference_month=month_value):
                typer.echo(f"[{log_row.line_no:2d}] {log_row.message}")


if __name__ == "__main__":
    app()
