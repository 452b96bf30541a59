"""
avolve.engine.phases — Progression Phase State Machine
========================================================

``discovery → onboarding → scaffolding → endgame``, strictly linear.

A user's phase is a *view* over their unlock results: it is recomputed
from the snapshot every time and never stored, so it cannot drift from the
ledger the way a persisted ``has_X`` flag can.

Derivation:
  * current phase — the highest phase for which every feature in it and in
    all prior phases is unlocked; if there is none, the lowest phase
    containing a locked feature (i.e. ``discovery``).
  * terminal — ``endgame`` fully unlocked.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from avolve.engine.catalog import RequirementCatalog
from avolve.engine.models import Phase, ProgressSnapshot, UnlockResult
from avolve.engine.unlocks import evaluate_all

__all__ = ["PhaseProgress", "PhaseStatus", "current_phase", "phase_progress", "phase_status"]


@dataclass(frozen=True, slots=True)
class PhaseProgress:
    """Unlocked / total feature counts for one phase."""

    phase: Phase
    unlocked: int
    total: int

    @property
    def is_complete(self) -> bool:
        return self.unlocked == self.total

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.unlocked * 100 / self.total, 2)


@dataclass(frozen=True, slots=True)
class PhaseStatus:
    """Derived progression state for one user."""

    current_phase: Phase
    is_complete: bool
    phases: tuple[PhaseProgress, ...]

    @property
    def next_phase(self) -> Phase | None:
        """Lowest phase that still contains a locked feature."""
        for progress in self.phases:
            if not progress.is_complete:
                return progress.phase
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentPhase": self.current_phase.value,
            "isComplete": self.is_complete,
            "nextPhase": self.next_phase.value if self.next_phase else None,
            "phases": [
                {
                    "phase": p.phase.value,
                    "unlocked": p.unlocked,
                    "total": p.total,
                    "percent": p.percent,
                }
                for p in self.phases
            ],
        }


def phase_progress(
    results: Mapping[str, UnlockResult], catalog: RequirementCatalog
) -> tuple[PhaseProgress, ...]:
    """Per-phase counts, one entry for every phase in progression order.

    A phase with no features counts as complete.
    """
    unlocked = dict.fromkeys(Phase, 0)
    total = dict.fromkeys(Phase, 0)
    for req in catalog:
        total[req.phase] += 1
        if results[req.feature_key].is_unlocked:
            unlocked[req.phase] += 1
    return tuple(PhaseProgress(p, unlocked[p], total[p]) for p in Phase)


def current_phase(results: Mapping[str, UnlockResult], catalog: RequirementCatalog) -> Phase:
    """Derive the user's phase from *results* (see module docstring)."""
    reached: Phase | None = None
    for progress in phase_progress(results, catalog):
        if not progress.is_complete:
            break
        reached = progress.phase
    return reached if reached is not None else Phase.DISCOVERY


def phase_status(
    snapshot: ProgressSnapshot,
    catalog: RequirementCatalog,
    results: Mapping[str, UnlockResult] | None = None,
) -> PhaseStatus:
    """Full phase view for *snapshot*.

    *results* may be passed to reuse an existing :func:`evaluate_all` run.
    """
    if results is None:
        results = evaluate_all(snapshot, catalog)
    phases = phase_progress(results, catalog)
    return PhaseStatus(
        current_phase=current_phase(results, catalog),
        is_complete=all(p.is_complete for p in phases),
        phases=phases,
    )
