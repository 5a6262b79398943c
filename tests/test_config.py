"""Tests for TOML-based ladder config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from domain.config import BluePointPolicy, LadderConfig, load_ladder_config


def test_load_ladder_config_from_file(tmp_path: Path) -> None:
    config_path = tmp_path / "ladder.toml"
    config_path.write_text(
        """
[ladder]
timezone = "America/Recife"
max_positions_up = 6
inactive_months = [1]

[access_entry_rules]
ranking-geral = 15

[blue_point_policy]
consecutive_challenges_threshold = 3
range_limit = 4

[rollover]
include_all_slugs = ["ranking-geral"]
""".strip()
    )

    config = load_ladder_config(config_path)

    assert config.timezone == "America/Recife"
    assert config.max_positions_up == 6
    assert config.inactive_months == (1,)
    assert config.access_entry_rules == {"ranking-geral": 15}
    assert config.blue_point_policy == BluePointPolicy(consecutive_challenges_threshold=3, range_limit=4)
    assert config.rollover_include_all_slugs == ("ranking-geral",)
    assert config.file_path == config_path


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "ladder.toml"
    config_path.write_text("")

    config = load_ladder_config(config_path)

    assert config.timezone == "America/Sao_Paulo"
    assert config.max_positions_up == 10
    assert config.access_entry_rules == {
        "ranking-masculino": 30,
        "ranking-feminino": 10,
        "ranking-master-45": 20,
    }
    assert config.blue_point_policy.consecutive_challenges_threshold == 2


def test_repository_default_config_loads() -> None:
    config_path = Path(__file__).resolve().parents[1] / "configs" / "ladder.toml"
    config = load_ladder_config(config_path)
    assert config.as_config_json()["max_positions_up"] == LadderConfig().max_positions_up


def test_rules_for_resolves_category_threshold() -> None:
    config = LadderConfig()

    assert config.rules_for("ranking-feminino").access_threshold == 10
    assert config.rules_for("ranking-unknown").access_threshold is None
    assert config.rules_for(None).max_positions_up == 10


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_ladder_config(tmp_path / "missing.toml")


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("[ladder]\nmax_positions_up = 0", r"\[ladder\]\.max_positions_up must be > 0"),
        ("[ladder]\ntimezone = \"Mars/Olympus\"", r"\[ladder\]\.timezone"),
        ("[ladder]\ninactive_months = [13]", r"\[ladder\]\.inactive_months"),
        ("[access_entry_rules]\nranking-x = 0", r"\[access_entry_rules\]\.ranking-x must be > 0"),
        (
            "[blue_point_policy]\nconsecutive_challenges_threshold = 0",
            r"consecutive_challenges_threshold must be > 0",
        ),
    ],
)
def test_invalid_values_raise_with_file_path(tmp_path: Path, body: str, message: str) -> None:
    config_path = tmp_path / "ladder.toml"
    config_path.write_text(body)

    with pytest.raises(ValueError, match=message):
        load_ladder_config(config_path)
