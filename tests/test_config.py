"""
tests/test_config.py — YAML Configuration Loader Tests
========================================================

Uses tmp_path for every file so the packaged data is never touched.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from avolve.config import AvolveConfig, build_rules, load_config, load_rules
from avolve.constants import DEFAULT_STREAK_MULTIPLIERS
from avolve.errors import ConfigurationError

WEEK = """\
day_tokens:
  - {day: 0, symbol: SPD}
  - {day: 1, symbol: SHE}
  - {day: 2, symbol: PSP}
  - {day: 3, symbol: SSA}
  - {day: 4, symbol: BSP}
  - {day: 5, symbol: SGB}
  - {day: 6, symbol: SMS}
"""

FEATURES = """\
features:
  dash:
    phase: discovery
    requirements:
      tokens: {GEN: 5}
"""


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, "config.yaml", ""))
        assert cfg == AvolveConfig()
        assert cfg.strict is True

    def test_production_is_not_strict(self, tmp_path):
        cfg = load_config(_write(tmp_path, "config.yaml", "environment: Production\n"))
        assert cfg.environment == "production"
        assert cfg.strict is False

    def test_unknown_environment(self, tmp_path):
        with pytest.raises(ConfigurationError, match="staging"):
            load_config(_write(tmp_path, "config.yaml", "environment: staging\n"))

    def test_catalog_path_relative_to_config(self, tmp_path):
        sub = tmp_path / "conf"
        sub.mkdir()
        cfg = load_config(_write(sub, "config.yaml", "catalog_path: rules.yaml\nlog_level: debug\n"))
        assert cfg.catalog_path == (sub / "rules.yaml").resolve()
        assert cfg.log_level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(_write(tmp_path, "config.yaml", "- a\n- b\n"))

    def test_bad_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(_write(tmp_path, "config.yaml", "environment: [unclosed\n"))

    def test_unknown_log_level(self, tmp_path):
        with pytest.raises(ConfigurationError, match="LOUD"):
            load_config(_write(tmp_path, "config.yaml", "log_level: loud\n"))


class TestLoadRules:
    def test_packaged_defaults(self, caplog):
        with caplog.at_level(logging.INFO, logger="avolve.config"):
            rules = load_rules()
        assert len(rules.catalog) == 12
        assert len(rules.schedule) == 7
        assert rules.streaks.tiers == DEFAULT_STREAK_MULTIPLIERS
        assert "12 features" in caplog.text

    def test_custom_file(self, tmp_path):
        rules = load_rules(_write(tmp_path, "rules.yaml", FEATURES + WEEK))
        assert [r.feature_key for r in rules.catalog] == ["dash"]
        assert rules.schedule.token_for_day(6).symbol == "SMS"

    def test_streaks_default_when_absent(self, tmp_path):
        rules = load_rules(_write(tmp_path, "rules.yaml", WEEK))
        assert len(rules.catalog) == 0
        assert rules.streaks.tiers == DEFAULT_STREAK_MULTIPLIERS

    def test_custom_streaks(self, tmp_path):
        text = WEEK + "streak_multipliers:\n  2: 1.1\n  10: 2.0\n"
        rules = load_rules(_write(tmp_path, "rules.yaml", text))
        assert rules.streaks.multiplier_for_streak(9) == 1.1
        assert rules.streaks.multiplier_for_streak(10) == 2.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "missing.yaml")

    def test_missing_day_tokens(self, tmp_path):
        with pytest.raises(ConfigurationError, match="day_tokens"):
            load_rules(_write(tmp_path, "rules.yaml", FEATURES))

    def test_incomplete_week(self, tmp_path):
        text = "\n".join(WEEK.splitlines()[:-1]) + "\n"
        with pytest.raises(ConfigurationError, match="Saturday"):
            load_rules(_write(tmp_path, "rules.yaml", text))

    def test_bad_feature(self, tmp_path):
        text = "features:\n  dash:\n    phase: midgame\n" + WEEK
        with pytest.raises(ConfigurationError):
            load_rules(_write(tmp_path, "rules.yaml", text))

    def test_build_rules_requires_mapping(self):
        with pytest.raises(ConfigurationError):
            build_rules(None)
