"""Load ladder configuration from TOML files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import tomllib

DEFAULT_ACCESS_ENTRY_RULES: dict[str, int] = {
    "ranking-masculino": 30,
    "ranking-feminino": 10,
    "ranking-master-45": 20,
}


@dataclass(frozen=True)
class BluePointPolicy:
    consecutive_challenges_threshold: int = 2
    range_limit: int = 10


@dataclass(frozen=True)
class RankingRules:
    """Per-ranking rule values resolved once for one operation."""

    slug: str | None
    max_positions_up: int
    access_threshold: int | None
    blue_point_policy: BluePointPolicy


@dataclass(frozen=True)
class LadderConfig:
    """Club-wide ladder settings."""

    timezone: str = "America/Sao_Paulo"
    max_positions_up: int = 10
    inactive_months: tuple[int, ...] = ()
    access_entry_rules: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_ACCESS_ENTRY_RULES)
    )
    blue_point_policy: BluePointPolicy = field(default_factory=BluePointPolicy)
    rollover_include_all_slugs: tuple[str, ...] = tuple(DEFAULT_ACCESS_ENTRY_RULES)
    file_path: Path | None = None

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def access_threshold(self, slug: str | None) -> int | None:
        if not slug:
            return None
        return self.access_entry_rules.get(slug)

    def rules_for(self, slug: str | None) -> RankingRules:
        return RankingRules(
            slug=slug,
            max_positions_up=self.max_positions_up,
            access_threshold=self.access_threshold(slug),
            blue_point_policy=self.blue_point_policy,
        )

    def as_config_json(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "max_positions_up": self.max_positions_up,
            "inactive_months": list(self.inactive_months),
            "access_entry_rules": dict(self.access_entry_rules),
            "blue_point_policy": {
                "consecutive_challenges_threshold": self.blue_point_policy.consecutive_challenges_threshold,
                "range_limit": self.blue_point_policy.range_limit,
            },
            "rollover_include_all_slugs": list(self.rollover_include_all_slugs),
        }


def load_ladder_config(file_path: Path) -> LadderConfig:
    """Load and validate one ladder TOML config file."""
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Config path is not a file: {file_path}")

    with file_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_ladder_config(raw, file_path)


def _parse_ladder_config(raw: dict[str, Any], file_path: Path) -> LadderConfig:
    ladder_raw = raw.get("ladder", {})
    access_raw = raw.get("access_entry_rules", DEFAULT_ACCESS_ENTRY_RULES)
    blue_raw = raw.get("blue_point_policy", {})
    rollover_raw = raw.get("rollover", {})

    timezone = str(ladder_raw.get("timezone", "America/Sao_Paulo")).strip()
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"{file_path}: [ladder].timezone '{timezone}' is not a known zone") from exc

    max_positions_up = int(ladder_raw.get("max_positions_up", 10))
    if max_positions_up <= 0:
        raise ValueError(f"{file_path}: [ladder].max_positions_up must be > 0")

    inactive_months = tuple(int(value) for value in ladder_raw.get("inactive_months", []))
    if any(month < 1 or month > 12 for month in inactive_months):
        raise ValueError(f"{file_path}: [ladder].inactive_months must hold values between 1 and 12")
    if len(set(inactive_months)) >= 12:
        raise ValueError(f"{file_path}: [ladder].inactive_months cannot disable every month")

    access_entry_rules: dict[str, int] = {}
    for slug, threshold in access_raw.items():
        value = int(threshold)
        if value <= 0:
            raise ValueError(f"{file_path}: [access_entry_rules].{slug} must be > 0")
        access_entry_rules[str(slug)] = value

    blue_point_policy = BluePointPolicy(
        consecutive_challenges_threshold=int(blue_raw.get("consecutive_challenges_threshold", 2)),
        range_limit=int(blue_raw.get("range_limit", 10)),
    )
    if blue_point_policy.consecutive_challenges_threshold <= 0:
        raise ValueError(
            f"{file_path}: [blue_point_policy].consecutive_challenges_threshold must be > 0"
        )
    if blue_point_policy.range_limit <= 0:
        raise ValueError(f"{file_path}: [blue_point_policy].range_limit must be > 0")

    include_all_slugs = tuple(
        str(slug) for slug in rollover_raw.get("include_all_slugs", list(access_entry_rules))
    )

    return LadderConfig(
        timezone=timezone,
        max_positions_up=max_positions_up,
        inactive_months=inactive_months,
        access_entry_rules=access_entry_rules,
        blue_point_policy=blue_point_policy,
        rollover_include_all_slugs=include_all_slugs,
        file_path=file_path,
    )


__all__ = ["BluePointPolicy", "LadderConfig", "RankingRules", "load_ladder_config"]
