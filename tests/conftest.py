"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest

from avolve.config import ProgressionRules, load_rules
from avolve.engine.catalog import RequirementCatalog
from avolve.engine.models import FeatureRequirement, Phase, ProgressSnapshot, TokenAmount


def make_requirement(
    feature_key: str = "basic_profile",
    phase: Phase = Phase.DISCOVERY,
    tokens: dict[str, int] | None = None,
    milestones: list[str] | None = None,
) -> FeatureRequirement:
    """Build a FeatureRequirement from plain dicts."""
    return FeatureRequirement(
        feature_key=feature_key,
        phase=phase,
        token_requirements=tuple(TokenAmount(k, v) for k, v in (tokens or {}).items()),
        milestone_requirements=tuple(milestones or ()),
    )


def make_snapshot(
    balances: dict | None = None,
    milestones: list[str] | None = None,
    streak_length: int = 0,
) -> ProgressSnapshot:
    return ProgressSnapshot(
        balances=balances or {},
        milestones=frozenset(milestones or ()),
        streak_length=streak_length,
    )


@pytest.fixture(scope="session")
def rules() -> ProgressionRules:
    """The packaged progression data, loaded once per test session."""
    return load_rules()


@pytest.fixture
def catalog(rules: ProgressionRules) -> RequirementCatalog:
    return rules.catalog


@pytest.fixture
def gen_requirement() -> FeatureRequirement:
    """10 GEN + milestone discovery_2 (the basic_profile gate)."""
    return make_requirement(tokens={"GEN": 10}, milestones=["discovery_2"])


@pytest.fixture
def small_catalog() -> RequirementCatalog:
    """One feature per phase, cheap enough to unlock by hand."""
    return RequirementCatalog([
        make_requirement("dash", Phase.DISCOVERY, {"GEN": 5}, ["discovery_1"]),
        make_requirement("profile", Phase.DISCOVERY, {"GEN": 10}),
        make_requirement("modules", Phase.ONBOARDING, {"GEN": 25, "SAP": 10}, ["onboarding_1"]),
        make_requirement("forums", Phase.SCAFFOLDING, {"SSA": 10}),
        make_requirement("governance", Phase.ENDGAME, {"SGB": 100}, ["endgame_1"]),
    ])
