"""
avolve.__main__ — Entry point for ``python -m avolve``
========================================================

Validates the configured progression data and prints a per-phase summary.
Run it after editing ``progression.yaml`` to catch mistakes before deploy.

Wiring:
1. Load .env (``AVOLVE_CONFIG`` may point at a non-default config file).
2. Load config.yaml if present (packaged defaults otherwise).
3. Load and validate the progression rules.
4. Log the catalog, the day-token schedule, and the streak tiers.

Run with::

    uv run python -m avolve
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from avolve.config import AvolveConfig, load_config, load_rules
from avolve.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("avolve")


def main() -> int:
    """Validate the progression data.  Returns the process exit code."""

    # 1. Environment variables.
    load_dotenv()
    config_path = Path(os.getenv("AVOLVE_CONFIG", "config.yaml"))

    # 2. Infrastructure config (optional).
    if config_path.exists():
        try:
            cfg = load_config(config_path)
        except ConfigurationError as exc:
            logger.critical("Configuration in %s is invalid: %s", config_path, exc)
            return 1
    else:
        logger.info("No %s found — using packaged defaults", config_path)
        cfg = AvolveConfig()
    logging.getLogger().setLevel(cfg.log_level)

    # 3. Progression rules.
    try:
        rules = load_rules(cfg.catalog_path)
    except (ConfigurationError, FileNotFoundError) as exc:
        logger.critical("Progression data is invalid: %s", exc)
        return 1

    # 4. Summary.
    for phase in rules.catalog.phases_present():
        for req in rules.catalog.list_requirements_by_phase(phase):
            tokens = ", ".join(f"{t.amount} {t.token_type}" for t in req.token_requirements)
            logger.info(
                "[%s] %s — tokens: %s; milestones: %s",
                phase.value,
                req.feature_key,
                tokens or "none",
                ", ".join(req.milestone_requirements) or "none",
            )
    for token in rules.schedule:
        logger.info("%-9s → %s (%s)", token.day_name, token.symbol, token.name)
    for threshold, multiplier in rules.streaks.tiers:
        logger.info("Streak ≥ %d days → %.1fx", threshold, multiplier)

    logger.info("Progression data OK (%s environment)", cfg.environment)
    return 0


if __name__ == "__main__":
    sys.exit(main())
