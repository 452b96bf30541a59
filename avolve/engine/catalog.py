"""
avolve.engine.catalog — Requirement Catalog
=============================================

Static mapping of feature key → :class:`FeatureRequirement`.  Built once
from configuration data at startup and never mutated afterwards, so a
single instance can be shared by every request without locking.

This module is pure — no database I/O.  :func:`avolve.config.load_rules`
reads the YAML and hands the raw entries to :func:`parse_features`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from avolve.engine.models import FeatureRequirement, Phase, TokenAmount
from avolve.errors import ConfigurationError, NotFoundError

__all__ = ["RequirementCatalog", "parse_feature", "parse_features"]


# ---------------------------------------------------------------------------
# Parsing raw configuration entries
# ---------------------------------------------------------------------------
def _parse_token_requirements(feature_key: str, raw: Any) -> tuple[TokenAmount, ...]:
    """Accepts ``[{"token": "GEN", "amount": 5}, ...]`` or ``{"GEN": 5}``."""
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        raw = [{"token": k, "amount": v} for k, v in raw.items()]
    if not isinstance(raw, list):
        raise ConfigurationError(f"{feature_key}: tokens must be a list or mapping")

    seen: set[str] = set()
    out: list[TokenAmount] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{feature_key}: token requirement must be a mapping")
        token = entry.get("token", entry.get("token_type", entry.get("tokenId")))
        amount = entry.get("amount")
        if not isinstance(token, str) or not token:
            raise ConfigurationError(f"{feature_key}: token requirement has no token type")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ConfigurationError(
                f"{feature_key}: amount for {token} must be a positive integer, got {amount!r}"
            )
        if token in seen:
            raise ConfigurationError(f"{feature_key}: token {token} listed twice")
        seen.add(token)
        out.append(TokenAmount(token, amount))
    return tuple(out)


def _parse_milestones(feature_key: str, raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError(f"{feature_key}: milestones must be a list")
    for m in raw:
        if not isinstance(m, str) or not m:
            raise ConfigurationError(f"{feature_key}: invalid milestone {m!r}")
    if len(set(raw)) != len(raw):
        raise ConfigurationError(f"{feature_key}: duplicate milestone requirement")
    return tuple(raw)


def parse_feature(feature_key: str, raw: Mapping[str, Any]) -> FeatureRequirement:
    """Build one FeatureRequirement from its YAML mapping.

    Config::

        basic_profile:
          name: Basic Profile
          phase: discovery
          requirements:
            tokens: [{token: GEN, amount: 10}]
            milestones: [discovery_2]
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{feature_key}: feature definition must be a mapping")
    if "phase" not in raw:
        raise ConfigurationError(f"{feature_key}: missing phase")

    requirements = raw.get("requirements") or {}
    if not isinstance(requirements, Mapping):
        raise ConfigurationError(f"{feature_key}: requirements must be a mapping")

    return FeatureRequirement(
        feature_key=feature_key,
        phase=Phase.parse(raw["phase"]),
        token_requirements=_parse_token_requirements(feature_key, requirements.get("tokens")),
        milestone_requirements=_parse_milestones(feature_key, requirements.get("milestones")),
        name=raw.get("name") or feature_key,
        description=raw.get("description") or "",
        icon=raw.get("icon"),
    )


def parse_features(raw: Mapping[str, Any]) -> list[FeatureRequirement]:
    """Parse the ``features`` section (feature key → definition)."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError("features must be a mapping of feature key to definition")
    return [parse_feature(str(key), value) for key, value in raw.items()]


# ---------------------------------------------------------------------------
# RequirementCatalog
# ---------------------------------------------------------------------------
class RequirementCatalog:
    """Immutable, shareable feature → requirement lookup.

    Usage::

        catalog = RequirementCatalog(parse_features(raw["features"]))
        req = catalog.get_requirement("basic_profile")
        for req in catalog.list_requirements_by_phase(Phase.ONBOARDING):
            ...
    """

    __slots__ = ("_by_key",)

    def __init__(self, requirements: Iterable[FeatureRequirement]) -> None:
        by_key: dict[str, FeatureRequirement] = {}
        for req in requirements:
            if req.feature_key in by_key:
                raise ConfigurationError(f"Duplicate feature key: {req.feature_key}")
            by_key[req.feature_key] = req
        self._by_key: Mapping[str, FeatureRequirement] = MappingProxyType(by_key)

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self) -> Iterator[FeatureRequirement]:
        return iter(self._by_key.values())

    def __contains__(self, feature_key: object) -> bool:
        return feature_key in self._by_key

    def __repr__(self) -> str:
        return f"RequirementCatalog({len(self)} features)"

    def features(self) -> tuple[FeatureRequirement, ...]:
        """All requirements in catalog (definition) order."""
        return tuple(self._by_key.values())

    def get_requirement(self, feature_key: str) -> FeatureRequirement:
        """Return the requirement for *feature_key*.

        Raises
        ------
        NotFoundError
            If the key is absent.  This is a configuration error: callers on
            production rendering paths should log it and skip the feature.
        """
        try:
            return self._by_key[feature_key]
        except KeyError:
            raise NotFoundError("feature", feature_key) from None

    def list_requirements_by_phase(self, phase: Phase | str) -> Iterator[FeatureRequirement]:
        """Requirements in *phase*, cheapest (total token cost) first.

        Ties keep catalog order.  Each call derives a fresh iterator from the
        static data, so the sequence is finite and restartable.
        """
        phase = Phase.parse(phase)
        in_phase = [r for r in self._by_key.values() if r.phase is phase]
        in_phase.sort(key=lambda r: r.total_token_cost)
        return iter(in_phase)

    def phases_present(self) -> tuple[Phase, ...]:
        """Phases with at least one feature, in progression order."""
        present = {r.phase for r in self._by_key.values()}
        return tuple(p for p in Phase if p in present)
