"""
tests/test_catalog.py — Requirement Catalog Tests
===================================================
"""

from __future__ import annotations

import pytest
from conftest import make_requirement

from avolve.engine.catalog import RequirementCatalog, parse_feature, parse_features
from avolve.engine.models import Phase, TokenAmount
from avolve.errors import ConfigurationError, NotFoundError


class TestLookup:
    def test_get_requirement(self, catalog):
        req = catalog.get_requirement("basic_profile")
        assert req.phase is Phase.DISCOVERY
        assert req.token_requirements == (TokenAmount("GEN", 10),)
        assert req.milestone_requirements == ("discovery_2",)
        assert req.name == "Basic Profile"

    def test_unknown_feature(self, catalog):
        with pytest.raises(NotFoundError) as exc_info:
            catalog.get_requirement("teleporter")
        assert exc_info.value.key == "teleporter"
        # configuration error, and still catchable as a lookup failure
        assert isinstance(exc_info.value, ConfigurationError)
        assert isinstance(exc_info.value, LookupError)

    def test_container_protocol(self, catalog):
        assert len(catalog) == 12
        assert "governance" in catalog
        assert "teleporter" not in catalog
        assert [r.feature_key for r in catalog][:3] == [
            "personal_dashboard", "basic_profile", "token_wallet",
        ]

    def test_phases_present(self, catalog):
        assert catalog.phases_present() == tuple(Phase)
        partial = RequirementCatalog([make_requirement("x", Phase.SCAFFOLDING)])
        assert partial.phases_present() == (Phase.SCAFFOLDING,)


class TestListByPhase:
    def test_sorted_by_total_cost(self, catalog):
        keys = [r.feature_key for r in catalog.list_requirements_by_phase(Phase.ONBOARDING)]
        # 35, 45, 50 total tokens
        assert keys == ["superachiever_modules", "achievement_tracker", "goal_setting"]

    def test_ties_keep_catalog_order(self):
        cat = RequirementCatalog([
            make_requirement("b", tokens={"GEN": 10}),
            make_requirement("a", tokens={"SAP": 10}),
            make_requirement("c", tokens={"GEN": 1}),
        ])
        keys = [r.feature_key for r in cat.list_requirements_by_phase("discovery")]
        assert keys == ["c", "b", "a"]

    def test_restartable(self, catalog):
        first = list(catalog.list_requirements_by_phase(Phase.ENDGAME))
        second = list(catalog.list_requirements_by_phase(Phase.ENDGAME))
        assert first == second
        assert len(first) == 3

    def test_empty_phase(self):
        cat = RequirementCatalog([make_requirement("x", Phase.DISCOVERY)])
        assert list(cat.list_requirements_by_phase(Phase.ENDGAME)) == []

    def test_unknown_phase(self, catalog):
        with pytest.raises(ConfigurationError):
            list(catalog.list_requirements_by_phase("midgame"))


class TestParsing:
    def test_token_mapping_shorthand(self):
        req = parse_feature("f", {"phase": "onboarding", "requirements": {"tokens": {"GEN": 5}}})
        assert req.token_requirements == (TokenAmount("GEN", 5),)
        assert req.milestone_requirements == ()
        assert req.name == "f"

    def test_no_requirements(self):
        req = parse_feature("free", {"phase": "discovery"})
        assert req.requirement_count == 0
        assert req.total_token_cost == 0

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"phase": "midgame"},
            {"phase": "discovery", "requirements": {"tokens": [{"token": "GEN", "amount": 0}]}},
            {"phase": "discovery", "requirements": {"tokens": [{"token": "GEN", "amount": 2.5}]}},
            {"phase": "discovery", "requirements": {"tokens": [{"amount": 5}]}},
            {"phase": "discovery", "requirements": {"tokens": [
                {"token": "GEN", "amount": 5}, {"token": "GEN", "amount": 6},
            ]}},
            {"phase": "discovery", "requirements": {"milestones": ["a", "a"]}},
            {"phase": "discovery", "requirements": {"milestones": [{"id": "a"}]}},
            {"phase": "discovery", "requirements": {"milestones": "a"}},
            {"phase": "discovery", "requirements": ["GEN"]},
        ],
    )
    def test_malformed_features(self, raw):
        with pytest.raises(ConfigurationError):
            parse_feature("bad", raw)

    def test_duplicate_keys(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            RequirementCatalog([make_requirement("x"), make_requirement("x")])

    def test_parse_features_requires_mapping(self):
        with pytest.raises(ConfigurationError):
            parse_features([{"phase": "discovery"}])
