"""
avolve.config — YAML Configuration Loader
===========================================

Two YAML sources, both read once at process start:

* ``config.yaml`` — infrastructure settings (environment, log level, where
  the progression data lives).  Loaded into :class:`AvolveConfig`.
* the progression data file (``avolve/data/progression.yaml`` by default) —
  feature requirements, the day-token table, and streak multipliers.
  Loaded into :class:`ProgressionRules`.  Editing this file changes the
  gating rules without touching code.

Usage::

    from avolve.config import load_config, load_rules

    cfg = load_config()                  # reads ./config.yaml
    rules = load_rules(cfg.catalog_path) # packaged defaults when None
    rules.catalog.get_requirement("basic_profile")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from avolve.constants import DEFAULT_RULES_PATH
from avolve.engine.catalog import RequirementCatalog, parse_features
from avolve.engine.schedule import DayTokenSchedule, StreakMultiplierTable, parse_day_tokens
from avolve.errors import ConfigurationError

logger = logging.getLogger(__name__)

VALID_ENVIRONMENTS: frozenset[str] = frozenset({"development", "test", "production"})
VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AvolveConfig:
    """Immutable infrastructure configuration loaded from ``config.yaml``."""

    environment: str = "development"
    catalog_path: Path | None = None  # None → packaged progression.yaml
    log_level: str = "INFO"

    @property
    def strict(self) -> bool:
        """Configuration errors are fatal everywhere except production."""
        return self.environment != "production"


@dataclass(frozen=True, slots=True)
class ProgressionRules:
    """The single static configuration object shared by every request."""

    catalog: RequirementCatalog
    schedule: DayTokenSchedule
    streaks: StreakMultiplierTable


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def _read_yaml(path: Path) -> Any:
    with open(path, encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc


def load_config(path: str | Path = "config.yaml") -> AvolveConfig:
    """Read *path* and return an :class:`AvolveConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ConfigurationError
        If the environment name or log level is not recognised.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    raw = _read_yaml(config_path) or {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{config_path} must contain a mapping")

    environment = str(raw.get("environment", "development")).lower()
    if environment not in VALID_ENVIRONMENTS:
        raise ConfigurationError(
            f"Unknown environment {environment!r}; expected one of {sorted(VALID_ENVIRONMENTS)}"
        )

    log_level = str(raw.get("log_level", "INFO")).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log_level {log_level!r}; expected one of {sorted(VALID_LOG_LEVELS)}"
        )

    catalog_path = raw.get("catalog_path")
    if catalog_path:
        # Relative paths resolve against the config file's directory
        catalog_path = (config_path.parent / catalog_path).resolve()

    return AvolveConfig(
        environment=environment,
        catalog_path=catalog_path or None,
        log_level=log_level,
    )


def build_rules(raw: Mapping[str, Any]) -> ProgressionRules:
    """Validate already-parsed progression data and build the rule objects."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Progression data must be a mapping")
    if "day_tokens" not in raw:
        raise ConfigurationError("Progression data is missing 'day_tokens'")

    streak_raw = raw.get("streak_multipliers")
    return ProgressionRules(
        catalog=RequirementCatalog(parse_features(raw.get("features") or {})),
        schedule=DayTokenSchedule(parse_day_tokens(raw["day_tokens"])),
        streaks=(
            StreakMultiplierTable.from_mapping(streak_raw)
            if streak_raw is not None
            else StreakMultiplierTable()
        ),
    )


def load_rules(path: str | Path | None = None) -> ProgressionRules:
    """Read the progression data file and return :class:`ProgressionRules`.

    Parameters
    ----------
    path:
        YAML file to read.  Defaults to the packaged ``progression.yaml``.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ConfigurationError
        If the data is malformed or inconsistent.
    """
    rules_path = Path(path) if path is not None else DEFAULT_RULES_PATH
    if not rules_path.exists():
        raise FileNotFoundError(f"Progression data not found: {rules_path.resolve()}")

    rules = build_rules(_read_yaml(rules_path))
    logger.info(
        "Progression rules loaded from %s: %d features, %d day tokens, %d streak tiers",
        rules_path.name,
        len(rules.catalog),
        len(rules.schedule),
        len(rules.streaks.tiers),
    )
    return rules
