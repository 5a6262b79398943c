"""Challenge window resolution and the round phase state machine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import Any

from sqlalchemy.orm import Session

from domain.config import LadderConfig
from domain.dates import as_utc, format_local, local_datetime, month_key, shift_month
from domain.protocol import WindowPhase
from repositories.rounds import list_open_rounds

BLUE_WINDOW_START = time(7, 0)


@dataclass(frozen=True)
class ChallengeWindow:
    """Boundary instants of one round (aware UTC)."""

    round_start: datetime
    round_end: datetime | None
    blue_start: datetime
    blue_end: datetime | None
    open_start: datetime
    open_end: datetime | None


@dataclass(frozen=True)
class WindowState:
    phase: WindowPhase
    can_challenge: bool
    requires_blue: bool
    requires_regular: bool
    message: str
    unlock_at: datetime | None
    window: ChallengeWindow


def window_from_round(round_row: Any, tz: tzinfo) -> ChallengeWindow | None:
    """Clamp a configured round into a non-inverted window.

    Returns ``None`` when the round lacks the blue-point or open-challenge
    start, in which case callers fall back to the calendar-month window.
    """
    blue_start = as_utc(getattr(round_row, "blue_point_opens_at", None))
    open_start = as_utc(getattr(round_row, "open_challenges_at", None))
    if blue_start is None or open_start is None:
        return None

    round_start = as_utc(getattr(round_row, "round_opens_at", None))
    if round_start is None:
        reference_month = getattr(round_row, "reference_month", None)
        if reference_month is None:
            reference_month = month_key(blue_start, tz)
        round_start = local_datetime(reference_month, time(0, 0), tz)
    round_end = as_utc(getattr(round_row, "matches_deadline", None))

    blue_end = as_utc(getattr(round_row, "blue_point_closes_at", None))
    open_end = as_utc(getattr(round_row, "open_challenges_end_at", None)) or round_end

    if blue_start < round_start:
        blue_start = round_start
    if blue_end is not None and blue_end < blue_start:
        blue_end = blue_start
    if blue_end is None:
        blue_end = open_start
    if open_start < blue_start:
        open_start = blue_start
    if open_start < blue_end:
        open_start = blue_end
    if open_end is not None and round_end is not None and open_end > round_end:
        open_end = round_end

    return ChallengeWindow(
        round_start=round_start,
        round_end=round_end,
        blue_start=blue_start,
        blue_end=blue_end,
        open_start=open_start,
        open_end=open_end,
    )


def fallback_window(now: datetime, tz: tzinfo) -> ChallengeWindow:
    """Whole-month window used when no round is configured."""
    month_start = month_key(now, tz)
    round_start = local_datetime(month_start, time(0, 0), tz)
    round_end = local_datetime(shift_month(month_start, 1), time(0, 0), tz)
    blue_start = local_datetime(month_start, BLUE_WINDOW_START, tz)
    blue_end = blue_start + timedelta(hours=24)
    return ChallengeWindow(
        round_start=round_start,
        round_end=round_end,
        blue_start=blue_start,
        blue_end=blue_end,
        open_start=blue_end,
        open_end=round_end,
    )


def resolve_challenge_windows(
    session: Session,
    ranking_id: int,
    now: datetime,
    *,
    config: LadderConfig,
) -> ChallengeWindow:
    """Window of the newest open round for the ranking, else the global one, else the month."""
    tz = config.tzinfo
    open_rounds = list_open_rounds(session, ranking_id=ranking_id, include_global=True)
    scoped = next((row for row in open_rounds if row.ranking_id == ranking_id), None)
    global_round = next((row for row in open_rounds if row.ranking_id is None), None)

    round_row = scoped or global_round
    if round_row is not None:
        window = window_from_round(round_row, tz)
        if window is not None:
            return window
    return fallback_window(now, tz)


def to_window_state(
    window: ChallengeWindow,
    now: datetime,
    *,
    tz: tzinfo,
) -> WindowState:
    """Map the window boundaries and ``now`` onto exactly one phase.

    ``tz`` is the ladder zone the messages format their timestamps in.
    """
    moment = as_utc(now)

    if moment < window.round_start:
        return _state(
            window,
            WindowPhase.BEFORE,
            message=f"Round opens at {format_local(window.round_start, tz)}.",
            unlock_at=window.round_start,
        )

    if window.round_end is not None and moment > window.round_end:
        return _state(window, WindowPhase.CLOSED, message="Round period has ended.")

    if moment < window.blue_start:
        return _state(
            window,
            WindowPhase.WAITING_BLUE,
            message=(
                "Challenges are not open yet. The blue-point window starts at "
                f"{format_local(window.blue_start, tz)}."
            ),
            unlock_at=window.blue_start,
        )

    blue_end = window.blue_end or window.open_start
    if moment < blue_end:
        return _state(
            window,
            WindowPhase.BLUE,
            message="Blue-point players only.",
            unlock_at=window.open_start,
            can_challenge=True,
            requires_blue=True,
        )

    if moment < window.open_start:
        return _state(
            window,
            WindowPhase.WAITING_OPEN,
            message=f"Open challenges start at {format_local(window.open_start, tz)}.",
            unlock_at=window.open_start,
        )

    if window.open_end is not None and moment >= window.open_end:
        return _state(window, WindowPhase.AFTER_OPEN, message="Open challenge window has ended.")

    return _state(window, WindowPhase.OPEN, message="Open challenges active.", can_challenge=True)


def _state(
    window: ChallengeWindow,
    phase: WindowPhase,
    *,
    message: str,
    unlock_at: datetime | None = None,
    can_challenge: bool = False,
    requires_blue: bool = False,
) -> WindowState:
    return WindowState(
        phase=phase,
        can_challenge=can_challenge,
        requires_blue=requires_blue,
        requires_regular=False,
        message=message,
        unlock_at=unlock_at,
        window=window,
    )


__all__ = [
    "ChallengeWindow",
    "WindowState",
    "fallback_window",
    "resolve_challenge_windows",
    "to_window_state",
    "window_from_round",
]
