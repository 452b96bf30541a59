"""
avolve.engine.unlocks — Unlock Evaluator
==========================================

Compares a :class:`ProgressSnapshot` against catalog requirements.

This module is pure calculation — no database I/O, no shared mutable
state.  Every function may be called concurrently from any thread.

Rules:
  * A feature is unlocked iff every token requirement is met (``have >= need``,
    absent tokens count as zero) AND every milestone is present.
  * Progress is the mean of per-requirement ratios, each capped at 100 %.
    Token and milestone requirements weigh one unit each.
  * A feature with no requirements is unlocked at 100 %.
"""

from __future__ import annotations

import logging
import math
from fractions import Fraction

from avolve.engine.catalog import RequirementCatalog
from avolve.engine.models import (
    FeatureRequirement,
    MissingToken,
    ProgressSnapshot,
    UnlockResult,
)

logger = logging.getLogger(__name__)

__all__ = [
    "evaluate", "evaluate_all", "next_unlock", "progress_ratio", "round_percent", "unlock_reason",
]

_HUNDRED = Fraction(100)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------
def progress_ratio(snapshot: ProgressSnapshot, requirement: FeatureRequirement) -> Fraction:
    """Exact completion percentage (0–100) as a Fraction.

    Rational arithmetic keeps repeated thirds and sevenths from drifting;
    rounding happens once, in :func:`round_percent`.
    """
    if requirement.requirement_count == 0:
        return _HUNDRED

    total = Fraction(0)
    for req in requirement.token_requirements:
        have = Fraction(snapshot.balance_of(req.token_type))
        total += min(_HUNDRED, have * 100 / Fraction(req.amount))
    for milestone in requirement.milestone_requirements:
        if snapshot.has_milestone(milestone):
            total += _HUNDRED
    return total / requirement.requirement_count


def round_percent(ratio: Fraction) -> float:
    """Round an exact percentage to two decimals, halves away from zero.

    The rational itself is rounded, so 0.125 gives 0.13.
    """
    return math.floor(ratio * 100 + Fraction(1, 2)) / 100


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------
def evaluate(snapshot: ProgressSnapshot, requirement: FeatureRequirement) -> UnlockResult:
    """Evaluate a single feature requirement against *snapshot*."""
    missing_tokens = tuple(
        MissingToken(req.token_type, snapshot.balance_of(req.token_type), req.amount)
        for req in requirement.token_requirements
        if snapshot.balance_of(req.token_type) < req.amount
    )
    missing_milestones = tuple(
        m for m in requirement.milestone_requirements if not snapshot.has_milestone(m)
    )

    return UnlockResult(
        feature_key=requirement.feature_key,
        is_unlocked=not missing_tokens and not missing_milestones,
        progress_percent=round_percent(progress_ratio(snapshot, requirement)),
        missing_tokens=missing_tokens,
        missing_milestones=missing_milestones,
    )


def evaluate_all(
    snapshot: ProgressSnapshot, catalog: RequirementCatalog
) -> dict[str, UnlockResult]:
    """Evaluate every feature in *catalog*, keyed by feature key.

    Features are independent of one another; catalog order is preserved.
    """
    results = {req.feature_key: evaluate(snapshot, req) for req in catalog}
    logger.debug(
        "Evaluated %d features: %d unlocked",
        len(results),
        sum(1 for r in results.values() if r.is_unlocked),
    )
    return results


def next_unlock(
    snapshot: ProgressSnapshot,
    catalog: RequirementCatalog,
    results: dict[str, UnlockResult] | None = None,
) -> UnlockResult | None:
    """The locked feature the user is closest to unlocking.

    Highest progress wins; ties go to the earlier phase, then the lower
    total token cost, then catalog order.  Returns None once every feature
    is unlocked.

    *results* may be passed to reuse an existing :func:`evaluate_all` run.
    """
    if results is None:
        results = evaluate_all(snapshot, catalog)

    best: tuple[tuple, UnlockResult] | None = None
    for index, req in enumerate(catalog):
        result = results[req.feature_key]
        if result.is_unlocked:
            continue
        key = (
            -progress_ratio(snapshot, req),
            req.phase.rank,
            req.total_token_cost,
            index,
        )
        if best is None or key < best[0]:
            best = (key, result)
    return best[1] if best is not None else None


def unlock_reason(result: UnlockResult) -> str:
    """Human-readable reason a feature is (or is not) available."""
    return result.unlock_reason
