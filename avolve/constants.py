"""
avolve.constants — Shared Constants
=====================================

Single source of truth for the progression phase order, the default
streak-multiplier table, and the token hierarchy.  Import from here
instead of re-declaring these tables in services or tests.
"""

from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Packaged data
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_RULES_PATH = DATA_DIR / "progression.yaml"

# ---------------------------------------------------------------------------
# Progression phases — strictly linear, no skipping
# ---------------------------------------------------------------------------
PHASE_ORDER: tuple[str, ...] = ("discovery", "onboarding", "scaffolding", "endgame")

# ---------------------------------------------------------------------------
# Streak multipliers — (threshold_days, multiplier), ascending thresholds
# ---------------------------------------------------------------------------
DEFAULT_STREAK_MULTIPLIERS: tuple[tuple[int, float], ...] = (
    (3, 1.2),
    (5, 1.5),
    (7, 1.7),
)

BASE_MULTIPLIER = 1.0

# ---------------------------------------------------------------------------
# Day names (0 = Sunday)
# ---------------------------------------------------------------------------
DAY_NAMES: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

# ---------------------------------------------------------------------------
# Token hierarchy
#   GEN  Supercivilization (top level)
#   SAP  Superachiever, individual journey tokens
#   SCQ  Superachievers, collective journey tokens
# ---------------------------------------------------------------------------
TOKEN_PARENTS: dict[str, str] = {
    "PSP": "SAP",
    "BSP": "SAP",
    "SMS": "SAP",
    "SPD": "SCQ",
    "SHE": "SCQ",
    "SSA": "SCQ",
    "SGB": "SCQ",
    "SAP": "GEN",
    "SCQ": "GEN",
}


def parent_token(symbol: str) -> str:
    """Return the parent of *symbol* in the token hierarchy.

    Top-level and unknown symbols are their own parent.
    """
    return TOKEN_PARENTS.get(symbol, symbol)
