"""
avolve.services.progression_service — Progression Façade
==========================================================

The one object request handlers talk to.  Wraps the pure engine with the
production error policy:

* **strict** (development / test): configuration errors propagate so a
  typo in a feature key fails loudly.
* **non-strict** (production): configuration errors are logged and the
  feature is treated as locked (gating checks) or skipped (rendering).
  A gate never fails open.

Input validation errors (:class:`InvalidInputError`) always propagate —
a malformed snapshot points at an upstream ledger bug.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import Any

from avolve.config import ProgressionRules
from avolve.engine.cache import UnlockCache
from avolve.engine.models import ClaimQuote, ProgressSnapshot, UnlockResult
from avolve.engine.phases import PhaseStatus, phase_status
from avolve.engine.unlocks import evaluate, evaluate_all, next_unlock
from avolve.errors import ConfigurationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ProgressionReport — output contract for dashboard-style consumers
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ProgressionReport:
    """Everything the UI needs to render a user's progression."""

    results: dict[str, UnlockResult]
    phase: PhaseStatus
    next_unlock: UnlockResult | None
    claim: ClaimQuote | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "features": {key: r.to_dict() for key, r in self.results.items()},
            "phase": self.phase.to_dict(),
            "nextUnlock": self.next_unlock.to_dict() if self.next_unlock else None,
            "claim": self.claim.to_dict() if self.claim else None,
        }


class ProgressionService:
    """Evaluate unlocks, phases, and daily claims against shared rules.

    Parameters
    ----------
    rules : Static configuration loaded once at startup.
    strict : Propagate configuration errors instead of failing closed.
    cache : Optional per-user result cache for :meth:`user_results`.
    """

    def __init__(
        self,
        rules: ProgressionRules,
        *,
        strict: bool = True,
        cache: UnlockCache | None = None,
    ) -> None:
        self.rules = rules
        self.strict = strict
        self.cache = cache

    # -------------------------------------------------------------------
    # Feature gating
    # -------------------------------------------------------------------
    def feature_status(
        self, snapshot: ProgressSnapshot, feature_key: str
    ) -> UnlockResult | None:
        """UnlockResult for one feature, or None when the key is unknown in production."""
        try:
            requirement = self.rules.catalog.get_requirement(feature_key)
        except ConfigurationError:
            if self.strict:
                raise
            logger.warning("Unknown feature %r requested — skipping", feature_key)
            return None
        return evaluate(snapshot, requirement)

    def is_feature_unlocked(self, snapshot: ProgressSnapshot, feature_key: str) -> bool:
        """Gating check.  Unknown features are locked in production (fail closed)."""
        result = self.feature_status(snapshot, feature_key)
        return result is not None and result.is_unlocked

    def report(
        self,
        payload: Mapping[str, Any] | ProgressSnapshot,
        *,
        day_of_week: int | None = None,
    ) -> ProgressionReport:
        """Full progression view for one user.

        *payload* is either a ready :class:`ProgressSnapshot` or the raw
        input-contract mapping.  When *day_of_week* is given the report also
        carries that day's claim quote at the snapshot's streak length.
        """
        snapshot = (
            payload
            if isinstance(payload, ProgressSnapshot)
            else ProgressSnapshot.from_payload(payload)
        )
        catalog = self.rules.catalog
        results = evaluate_all(snapshot, catalog)
        claim = (
            self.claim_quote(day_of_week, snapshot.streak_length)
            if day_of_week is not None
            else None
        )
        return ProgressionReport(
            results=results,
            phase=phase_status(snapshot, catalog, results),
            next_unlock=next_unlock(snapshot, catalog, results),
            claim=claim,
        )

    def user_results(
        self,
        user_id: Hashable,
        loader: Callable[[Hashable], ProgressSnapshot],
    ) -> dict[str, UnlockResult]:
        """Results for *user_id*, served from the cache when one is configured.

        *loader* is the data layer's snapshot fetcher, injected by the caller.
        """
        if self.cache is None:
            return evaluate_all(loader(user_id), self.rules.catalog)
        return self.cache.get_or_compute(user_id, loader, self.rules.catalog)

    # -------------------------------------------------------------------
    # Daily claims
    # -------------------------------------------------------------------
    def claim_quote(self, day_of_week: int, streak_length: int) -> ClaimQuote:
        """Which token is claimable on *day_of_week* and at what multiplier."""
        token = self.rules.schedule.token_for_day(day_of_week)
        return self.rules.streaks.quote(token, streak_length)

    def claim_reward(self, base_amount: int, streak_length: int) -> int:
        """Streak-adjusted amount for a claim worth *base_amount* at streak 0."""
        amount = self.rules.streaks.streak_reward(base_amount, streak_length)
        logger.debug(
            "Claim reward: base=%d streak=%d → %d", base_amount, streak_length, amount
        )
        return amount
