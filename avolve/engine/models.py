"""
avolve.engine.models — Progression Value Types
================================================

Immutable value objects shared by the catalog, the unlock evaluator, the
day-token scheduler, and the phase state machine.

Static configuration (:class:`FeatureRequirement`, :class:`DayToken`) is
built once at startup.  Read models (:class:`ProgressSnapshot`,
:class:`UnlockResult`, :class:`ClaimQuote`) are built per request and
discarded after the response; none of them is ever persisted by the core.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from types import MappingProxyType
from typing import Any, Union

from avolve.constants import PHASE_ORDER, parent_token
from avolve.errors import ConfigurationError, InvalidInputError

__all__ = [
    "Amount",
    "ClaimQuote",
    "DayToken",
    "FeatureRequirement",
    "MissingToken",
    "Phase",
    "ProgressSnapshot",
    "TokenAmount",
    "UnlockResult",
]

Amount = Union[int, float, Decimal, Fraction]


# ---------------------------------------------------------------------------
# Phase
# ---------------------------------------------------------------------------
class Phase(enum.StrEnum):
    """Coarse-grained progression stage, strictly ordered."""
    DISCOVERY = "discovery"
    ONBOARDING = "onboarding"
    SCAFFOLDING = "scaffolding"
    ENDGAME = "endgame"

    @property
    def rank(self) -> int:
        return PHASE_ORDER.index(self.value)

    @classmethod
    def parse(cls, value: Any) -> Phase:
        """Return the Phase named by *value* or raise ConfigurationError."""
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown phase {value!r}; expected one of {', '.join(PHASE_ORDER)}"
            ) from None


# ---------------------------------------------------------------------------
# Numeric validation
# ---------------------------------------------------------------------------
def check_amount(value: Any, label: str) -> Amount:
    """Validate a snapshot amount: a finite, non-negative number.

    Bools and numeric strings are rejected rather than coerced, so a
    malformed ledger row surfaces instead of being masked.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, Fraction)):
        raise InvalidInputError(f"{label} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        finite = value.is_finite()
    elif isinstance(value, float):
        finite = math.isfinite(value)
    else:
        finite = True
    if not finite:
        raise InvalidInputError(f"{label} must be finite, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{label} must be non-negative, got {value!r}")
    return value


def check_count(value: Any, label: str) -> int:
    """Validate a non-negative integer counter (streak length, etc.)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{label} must be non-negative, got {value!r}")
    return value


def plain_number(value: Amount) -> int | float:
    """Render an amount as a JSON-friendly int (when integral) or float."""
    if isinstance(value, int):
        return value
    if value == int(value):
        return int(value)
    return float(value)


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TokenAmount:
    """A token type paired with an amount (a balance row or a requirement)."""

    token_type: str
    amount: Amount


@dataclass(frozen=True, slots=True)
class FeatureRequirement:
    """Everything a user must hold to unlock one feature.

    ``token_requirements`` and ``milestone_requirements`` are AND'd: every
    entry must be satisfied.  Display metadata (name, description, icon) is
    carried for the UI and plays no part in evaluation.
    """

    feature_key: str
    phase: Phase
    token_requirements: tuple[TokenAmount, ...] = ()
    milestone_requirements: tuple[str, ...] = ()
    name: str = ""
    description: str = ""
    icon: str | None = None

    @property
    def total_token_cost(self) -> Amount:
        return sum((t.amount for t in self.token_requirements), 0)

    @property
    def requirement_count(self) -> int:
        return len(self.token_requirements) + len(self.milestone_requirements)


# ---------------------------------------------------------------------------
# ProgressSnapshot — per-user read model
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Read-only aggregate of a user's balances, milestones, and counters.

    Parameters
    ----------
    balances : Mapping of token type → amount held.  A token type that is
        absent counts as a balance of zero.
    milestones : Completed milestone identifiers (order irrelevant).
    streak_length : Consecutive-day claim streak.
    completed_challenges : Number of challenges completed.
    """

    balances: Mapping[str, Amount] = field(default_factory=dict)
    milestones: frozenset[str] = frozenset()
    streak_length: int = 0
    completed_challenges: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.balances, Mapping):
            raise InvalidInputError("balances must be a mapping of token type to amount")
        balances: dict[str, Amount] = {}
        for token_type, amount in self.balances.items():
            if not isinstance(token_type, str) or not token_type:
                raise InvalidInputError(f"Invalid token type {token_type!r}")
            balances[token_type] = check_amount(amount, f"Balance of {token_type}")

        if isinstance(self.milestones, (str, bytes)) or not isinstance(self.milestones, Iterable):
            raise InvalidInputError("milestones must be a collection of strings")
        entries = list(self.milestones)
        for m in entries:
            if not isinstance(m, str) or not m:
                raise InvalidInputError(f"Invalid milestone identifier {m!r}")
        milestones = frozenset(entries)

        object.__setattr__(self, "balances", MappingProxyType(balances))
        object.__setattr__(self, "milestones", milestones)
        check_count(self.streak_length, "streak_length")
        check_count(self.completed_challenges, "completed_challenges")

    def balance_of(self, token_type: str) -> Amount:
        return self.balances.get(token_type, 0)

    def has_milestone(self, milestone: str) -> bool:
        return milestone in self.milestones

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ProgressSnapshot:
        """Build a snapshot from the data layer's input contract.

        Expected shape::

            {
                "balances": [{"tokenType": "GEN", "amount": 10}, ...],
                "milestones": ["discovery_1", ...],
                "streakLength": 3,
                "completedChallenges": 12,      # optional
            }

        ``token_type``/``balance`` (the database column names) are accepted
        as aliases.  A token type listed twice is rejected.
        """
        if not isinstance(payload, Mapping):
            raise InvalidInputError("Snapshot payload must be a mapping")

        rows = payload.get("balances") or []
        if isinstance(rows, Mapping):
            rows = [{"tokenType": k, "amount": v} for k, v in rows.items()]
        if isinstance(rows, (str, bytes)) or not isinstance(rows, Iterable):
            raise InvalidInputError("balances must be a list of {tokenType, amount} rows")

        balances: dict[str, Amount] = {}
        for row in rows:
            if not isinstance(row, Mapping):
                raise InvalidInputError(f"Balance row must be a mapping, got {row!r}")
            token_type = row.get("tokenType", row.get("token_type"))
            amount = row.get("amount", row.get("balance"))
            if not isinstance(token_type, str) or not token_type:
                raise InvalidInputError(f"Balance row has invalid token type {token_type!r}")
            if token_type in balances:
                raise InvalidInputError(f"Duplicate balance row for {token_type!r}")
            if amount is None:
                raise InvalidInputError(f"Balance row for {token_type!r} has no amount")
            balances[token_type] = amount

        return cls(
            balances=balances,
            milestones=payload.get("milestones") or (),
            streak_length=payload.get("streakLength", payload.get("streak_length", 0)),
            completed_challenges=payload.get(
                "completedChallenges", payload.get("completed_challenges", 0)
            ),
        )


# ---------------------------------------------------------------------------
# UnlockResult — evaluator output
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MissingToken:
    """An unsatisfied token requirement."""

    token_type: str
    have: Amount
    need: Amount

    @property
    def shortfall(self) -> Amount:
        return self.need - self.have


@dataclass(frozen=True, slots=True)
class UnlockResult:
    """Derived unlock status for one feature.  Recomputed on demand."""

    feature_key: str
    is_unlocked: bool
    progress_percent: float
    missing_tokens: tuple[MissingToken, ...] = ()
    missing_milestones: tuple[str, ...] = ()

    @property
    def unlock_reason(self) -> str:
        """Specific, user-facing explanation of what is still missing."""
        if self.is_unlocked:
            return "Unlocked"
        parts = [
            f"{plain_number(t.shortfall)} more {t.token_type} "
            f"(have {plain_number(t.have)}, need {plain_number(t.need)})"
            for t in self.missing_tokens
        ]
        parts.extend(f"milestone {m}" for m in self.missing_milestones)
        return "Requires " + ", ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "featureKey": self.feature_key,
            "isUnlocked": self.is_unlocked,
            "progressPercent": self.progress_percent,
            "missingTokens": [
                {
                    "tokenType": t.token_type,
                    "have": plain_number(t.have),
                    "need": plain_number(t.need),
                }
                for t in self.missing_tokens
            ],
            "missingMilestones": list(self.missing_milestones),
            "unlockReason": self.unlock_reason,
        }


# ---------------------------------------------------------------------------
# Day tokens & claims
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DayToken:
    """The token claimable on one day of the week (0 = Sunday)."""

    day_of_week: int
    day_name: str
    symbol: str
    name: str
    description: str = ""
    gradient: str = ""  # cosmetic only

    @property
    def parent_symbol(self) -> str:
        return parent_token(self.symbol)


@dataclass(frozen=True, slots=True)
class ClaimQuote:
    """What a claim on a given day, at a given streak, is worth."""

    day_of_week: int
    token_symbol: str
    token_name: str
    multiplier: float
    streak_length: int
    days_until_next_multiplier: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "dayOfWeek": self.day_of_week,
            "tokenSymbol": self.token_symbol,
            "tokenName": self.token_name,
            "multiplier": self.multiplier,
            "streakLength": self.streak_length,
            "nextMultiplierAt": self.days_until_next_multiplier,
        }
