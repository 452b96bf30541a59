"""
tests/test_phases.py — Progression Phase Derivation Tests
===========================================================
"""

from __future__ import annotations

from conftest import make_requirement, make_snapshot

from avolve.engine.catalog import RequirementCatalog
from avolve.engine.models import Phase
from avolve.engine.phases import current_phase, phase_progress, phase_status
from avolve.engine.unlocks import evaluate_all

DISCOVERY_DONE = {"balances": {"GEN": 10}, "milestones": ["discovery_1"]}


def _status(catalog, balances=None, milestones=None):
    return phase_status(make_snapshot(balances, milestones), catalog)


class TestCurrentPhase:
    def test_new_user_is_in_discovery(self, small_catalog):
        status = _status(small_catalog)
        assert status.current_phase is Phase.DISCOVERY
        assert status.next_phase is Phase.DISCOVERY
        assert status.is_complete is False

    def test_discovery_complete(self, small_catalog):
        status = _status(small_catalog, **DISCOVERY_DONE)
        assert status.current_phase is Phase.DISCOVERY
        assert status.next_phase is Phase.ONBOARDING

    def test_no_skipping(self, small_catalog):
        # scaffolding and endgame satisfied, onboarding not
        status = _status(
            small_catalog,
            {"GEN": 10, "SSA": 10, "SGB": 100},
            ["discovery_1", "endgame_1"],
        )
        assert status.current_phase is Phase.DISCOVERY
        assert status.next_phase is Phase.ONBOARDING

    def test_onboarding_complete(self, small_catalog):
        status = _status(small_catalog, {"GEN": 25, "SAP": 10}, ["discovery_1", "onboarding_1"])
        assert status.current_phase is Phase.ONBOARDING
        assert status.next_phase is Phase.SCAFFOLDING

    def test_terminal(self, small_catalog):
        status = _status(
            small_catalog,
            {"GEN": 25, "SAP": 10, "SSA": 10, "SGB": 100},
            ["discovery_1", "onboarding_1", "endgame_1"],
        )
        assert status.current_phase is Phase.ENDGAME
        assert status.is_complete is True
        assert status.next_phase is None

    def test_rederived_after_balance_change(self, small_catalog):
        before = _status(small_catalog, {"GEN": 9}, ["discovery_1"])
        after = _status(small_catalog, {"GEN": 10}, ["discovery_1"])
        assert before.phases[0].unlocked == 1
        assert after.phases[0].unlocked == 2

    def test_empty_phase_counts_as_complete(self):
        catalog = RequirementCatalog([
            make_requirement("a", Phase.DISCOVERY, {"GEN": 1}),
            make_requirement("b", Phase.SCAFFOLDING, {"GEN": 2}),
        ])
        results = evaluate_all(make_snapshot({"GEN": 1}), catalog)
        # onboarding has no features, so discovery + onboarding are complete
        assert current_phase(results, catalog) is Phase.ONBOARDING


class TestPhaseProgress:
    def test_counts(self, small_catalog):
        results = evaluate_all(make_snapshot({"GEN": 10}), small_catalog)
        progress = phase_progress(results, small_catalog)
        assert [p.phase for p in progress] == list(Phase)
        assert (progress[0].unlocked, progress[0].total) == (1, 2)
        assert progress[0].percent == 50.0
        assert progress[1].percent == 0.0

    def test_to_dict(self, small_catalog):
        data = _status(small_catalog, **DISCOVERY_DONE).to_dict()
        assert data["currentPhase"] == "discovery"
        assert data["nextPhase"] == "onboarding"
        assert data["phases"][0] == {
            "phase": "discovery", "unlocked": 2, "total": 2, "percent": 100.0,
        }

    def test_full_catalog_new_user(self, catalog):
        status = phase_status(make_snapshot(), catalog)
        assert status.current_phase is Phase.DISCOVERY
        assert all(p.total == 3 for p in status.phases)
