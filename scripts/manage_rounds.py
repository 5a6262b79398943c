#!/usr/bin/env python3
"""Admin commands for monthly rounds: inspect windows, close, roll over, restore, reorder."""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, NoReturn

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory
from domain.config import LadderConfig, load_ladder_config
from domain.dates import parse_reference_month
from domain.eligibility import evaluate_challenge
from domain.errors import LadderError, RecalculationFailedError
from domain.round_closer import apply_manual_order, close_round
from domain.round_rollover import rollover_round
from domain.snapshots import ensure_baseline_snapshot, restore_snapshot
from domain.windows import resolve_challenge_windows, to_window_state
from logger import setup_logger
from repositories.schema import ensure_ladder_schema

DEFAULT_CONFIG_PATH = ROOT_DIR / "configs" / "ladder.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Monthly round administration for the club ladder.",
)

DbUrlOption = Annotated[
    str,
    typer.Option("--db-url", help="Database URL. Defaults to the local clubladder postgres instance."),
]
ConfigOption = Annotated[
    Path,
    typer.Option("--config", help="Ladder TOML config file."),
]
DebugOption = Annotated[bool, typer.Option("--debug", help="Enable debug logging.")]


def _load_config(config_path: Path) -> LadderConfig:
    try:
        return load_ladder_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _session_factory(db_url: str):
    engine = create_db_engine(db_url)
    ensure_ladder_schema(engine)
    return create_session_factory(engine)


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


@app.command("init-db")
def init_db(db_url: DbUrlOption = DEFAULT_DB_URL) -> None:
    """Create the ladder tables."""
    ensure_ladder_schema(create_db_engine(db_url))
    typer.echo("schema ready")


@app.command()
def window(
    ranking_id: Annotated[int, typer.Argument(help="Ranking id.")],
    at: Annotated[
        datetime | None,
        typer.Option("--at", help="Instant to evaluate (ISO, UTC when naive). Defaults to now."),
    ] = None,
    challenger: Annotated[
        int | None,
        typer.Option("--challenger", help="Also check a challenge from this user id."),
    ] = None,
    challenged: Annotated[
        int | None,
        typer.Option("--challenged", help="User id being challenged; requires --challenger."),
    ] = None,
    actor_id: Annotated[int | None, typer.Option("--actor-id", help="Acting user id (admins bypass the rules).")] = None,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Show the active challenge window and phase of a ranking."""
    if (challenger is None) != (challenged is None):
        raise typer.BadParameter("--challenger and --challenged go together", param_hint="--challenged")
    config = _load_config(config_path)
    now = at or datetime.now(UTC)
    session_factory = _session_factory(db_url)
    with session_factory() as session:
        resolved = resolve_challenge_windows(session, ranking_id, now, config=config)
        decision = None
        if challenger is not None and challenged is not None:
            try:
                decision = evaluate_challenge(
                    session, ranking_id, challenger, challenged, now, config=config, acting_user_id=actor_id
                )
            except LadderError as exc:
                _fail(exc)
    state = to_window_state(resolved, now, tz=config.tzinfo)

    typer.echo(f"phase={state.phase.value} can_challenge={state.can_challenge} requires_blue={state.requires_blue}")
    typer.echo(f"message={state.message}")
    typer.echo(f"unlock_at={state.unlock_at.isoformat() if state.unlock_at else '-'}")
    for name in ("round_start", "round_end", "blue_start", "blue_end", "open_start", "open_end"):
        value = getattr(resolved, name)
        typer.echo(f"  {name:<11} {value.isoformat() if value else '-'}")
    if decision is not None:
        typer.echo(f"allowed={decision.allowed} reason={decision.reason or '-'}")
        if not decision.allowed:
            raise typer.Exit(code=2)


@app.command()
def close(
    ranking_id: Annotated[int, typer.Argument(help="Ranking id.")],
    reference_month: Annotated[str, typer.Argument(help="Month to close, YYYY-MM.")],
    actor_id: Annotated[int | None, typer.Option("--actor-id", help="Acting admin user id.")] = None,
    persist_memberships: Annotated[
        bool,
        typer.Option("--persist/--no-persist", help="Write the new ladder onto memberships."),
    ] = True,
    close_status: Annotated[
        bool,
        typer.Option("--close-status/--keep-open", help="Mark the month's round closed."),
    ] = True,
    manual_override: Annotated[
        bool,
        typer.Option("--manual-override", help="Keep the current membership order as final."),
    ] = False,
    ignore_violations: Annotated[
        bool,
        typer.Option("--ignore-violations", help="Persist even when violations are found."),
    ] = False,
    close_global: Annotated[
        bool,
        typer.Option("--close-global", help="Also close the month's global round."),
    ] = False,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    debug: DebugOption = False,
) -> None:
    """Replay a month's challenges for one ranking and persist the result."""
    setup_logger(debug=debug)
    config = _load_config(config_path)
    session_factory = _session_factory(db_url)
    try:
        result = close_round(
            session_factory,
            ranking_id,
            reference_month,
            actor_id,
            config=config,
            persist_memberships=persist_memberships,
            close_status=close_status,
            manual_override=manual_override,
            ignore_violations=ignore_violations,
            close_global=close_global,
        )
    except LadderError as exc:
        _fail(exc)

    for line in result.log:
        typer.echo(line)
    for violation in result.violations:
        typer.echo(f"violation {violation}", err=True)
    typer.echo(
        f"persisted={result.persisted} manual_override={result.manual_override} "
        f"players={len(result.positions)} violations={len(result.violations)}"
    )
    if not result.persisted and result.violations:
        raise typer.Exit(code=2)


@app.command()
def rollover(
    ranking_id: Annotated[int, typer.Argument(help="Ranking id.")],
    reference_month: Annotated[str, typer.Argument(help="Month being closed, YYYY-MM.")],
    target_month: Annotated[
        str | None,
        typer.Option("--target-month", help="Month to open, YYYY-MM. Defaults to the next active month."),
    ] = None,
    actor_id: Annotated[int | None, typer.Option("--actor-id", help="Acting admin user id.")] = None,
    include_all: Annotated[
        bool,
        typer.Option("--include-all", help="Roll over every configured category ranking."),
    ] = False,
    skip_recalculate: Annotated[
        bool,
        typer.Option("--skip-recalculate", help="Open the next round without closing the month."),
    ] = False,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    debug: DebugOption = False,
) -> None:
    """Close a month and open the next round."""
    setup_logger(debug=debug)
    config = _load_config(config_path)
    session_factory = _session_factory(db_url)
    try:
        summary = rollover_round(
            session_factory,
            ranking_id,
            reference_month,
            actor_id,
            config=config,
            target_month=target_month,
            include_all=include_all,
            skip_recalculate=skip_recalculate,
        )
    except RecalculationFailedError as exc:
        for failed_ranking_id, violations in exc.violations_by_ranking.items():
            for violation in violations:
                typer.echo(f"ranking {failed_ranking_id}: {violation}", err=True)
        _fail(exc)
    except LadderError as exc:
        _fail(exc)

    for rolled in summary.rounds:
        action = "reopened" if rolled.reopened else "created"
        typer.echo(
            f"ranking_id={rolled.ranking_id} round_id={rolled.round_id} "
            f"month={rolled.reference_month:%Y-%m} {action}"
        )


@app.command()
def restore(
    ranking_id: Annotated[int, typer.Argument(help="Ranking id.")],
    reference_month: Annotated[str, typer.Argument(help="Snapshot month, YYYY-MM.")],
    prefer_end: Annotated[
        bool,
        typer.Option("--prefer-end", help="Use the end snapshot when one exists."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the snapshot without touching memberships."),
    ] = False,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    debug: DebugOption = False,
) -> None:
    """Write a stored snapshot back onto the ranking's memberships."""
    setup_logger(debug=debug)
    session_factory = _session_factory(db_url)
    try:
        restored = restore_snapshot(
            session_factory,
            ranking_id,
            reference_month,
            prefer_end_snapshot=prefer_end,
            persist_memberships=not dry_run,
        )
    except LadderError as exc:
        _fail(exc)

    typer.echo(f"snapshot={restored.snapshot_type.value} players={len(restored.positions)}")
    for position, user_id in sorted(restored.positions.items()):
        typer.echo(f"{position:3d}. user_id={user_id}")


@app.command()
def baseline(
    ranking_id: Annotated[int, typer.Argument(help="Ranking id.")],
    reference_month: Annotated[str, typer.Argument(help="Snapshot month, YYYY-MM.")],
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Store the month's start snapshot from the current order unless one exists."""
    try:
        month = parse_reference_month(reference_month)
    except LadderError as exc:
        _fail(exc)

    session_factory = _session_factory(db_url)
    with session_factory() as session:
        created = ensure_baseline_snapshot(session, ranking_id=ranking_id, month=month)
        session.commit()
    typer.echo("start snapshot stored" if created else "start snapshot already present")


@app.command()
def reorder(
    ranking_id: Annotated[int, typer.Argument(help="Ranking id.")],
    user_ids: Annotated[list[int], typer.Argument(help="Active player ids in their new order.")],
    reference_month: Annotated[
        str | None,
        typer.Option("--month", help="Also rewrite this month's start snapshot, YYYY-MM."),
    ] = None,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    debug: DebugOption = False,
) -> None:
    """Apply a manual order to a ranking's active players."""
    setup_logger(debug=debug)
    session_factory = _session_factory(db_url)
    try:
        positions = apply_manual_order(
            session_factory,
            ranking_id,
            user_ids,
            reference_month=reference_month,
        )
    except LadderError as exc:
        _fail(exc)

    typer.echo(f"reordered players={len(positions)}")


if __name__ == "__main__":
    app()
