"""
avolve.engine.schedule — Day-Token Scheduler & Streak Multipliers
===================================================================

Deterministic, stateless lookups:

* :class:`DayTokenSchedule` — day-of-week (0 = Sunday, 6 = Saturday) → the
  token claimable that day.
* :class:`StreakMultiplierTable` — consecutive-day claim streak → reward
  multiplier.  The applied multiplier is the highest tier whose threshold
  does not exceed the streak; below the first tier it is 1.0.

Both tables are validated on construction and immutable afterwards.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from avolve.constants import BASE_MULTIPLIER, DAY_NAMES, DEFAULT_STREAK_MULTIPLIERS
from avolve.engine.models import ClaimQuote, DayToken, check_count
from avolve.errors import ConfigurationError, InvalidInputError, NotFoundError

__all__ = ["DayTokenSchedule", "StreakMultiplierTable", "parse_day_tokens"]


def _check_day(day_of_week: Any) -> int:
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int):
        raise InvalidInputError(f"day_of_week must be an integer, got {day_of_week!r}")
    if not 0 <= day_of_week <= 6:
        raise InvalidInputError(f"day_of_week must be in [0, 6], got {day_of_week}")
    return day_of_week


# ---------------------------------------------------------------------------
# Day tokens
# ---------------------------------------------------------------------------
def parse_day_tokens(raw: Any) -> list[DayToken]:
    """Parse the ``day_tokens`` section.

    Config (one entry per day)::

        day_tokens:
          - {day: 0, symbol: SPD, name: Superpuzzle Developments, gradient: ...}
    """
    if not isinstance(raw, list):
        raise ConfigurationError("day_tokens must be a list of seven entries")

    tokens: list[DayToken] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"day_tokens entry must be a mapping, got {entry!r}")
        day = entry.get("day")
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ConfigurationError(f"day_tokens entry has invalid day {day!r}")
        symbol = entry.get("symbol")
        if not isinstance(symbol, str) or not symbol:
            raise ConfigurationError(f"day_tokens entry for day {day} has no symbol")
        tokens.append(
            DayToken(
                day_of_week=day,
                day_name=entry.get("day_name") or DAY_NAMES[day],
                symbol=symbol,
                name=entry.get("name") or symbol,
                description=entry.get("description") or "",
                gradient=entry.get("gradient") or "",
            )
        )
    return tokens


class DayTokenSchedule:
    """Fixed seven-entry table: one distinct token per day of the week."""

    __slots__ = ("_by_day", "_by_symbol")

    def __init__(self, tokens: Iterable[DayToken]) -> None:
        by_day: dict[int, DayToken] = {}
        by_symbol: dict[str, DayToken] = {}
        for token in tokens:
            if token.day_of_week in by_day:
                raise ConfigurationError(f"Day {token.day_of_week} is mapped twice")
            if token.symbol in by_symbol:
                raise ConfigurationError(f"Token {token.symbol} is mapped to two days")
            by_day[token.day_of_week] = token
            by_symbol[token.symbol] = token

        missing = sorted(set(range(7)) - by_day.keys())
        if missing:
            raise ConfigurationError(
                "Day-token schedule is missing days: "
                + ", ".join(DAY_NAMES[d] for d in missing)
            )
        self._by_day: tuple[DayToken, ...] = tuple(by_day[d] for d in range(7))
        self._by_symbol = by_symbol

    def __iter__(self) -> Iterator[DayToken]:
        return iter(self._by_day)

    def __len__(self) -> int:
        return len(self._by_day)

    def token_for_day(self, day_of_week: int) -> DayToken:
        """Return the token for *day_of_week* (0 = Sunday … 6 = Saturday)."""
        return self._by_day[_check_day(day_of_week)]

    def token_for_date(self, day: date) -> DayToken:
        """Return the token for a calendar date."""
        # date.weekday() is Monday = 0; shift to Sunday = 0
        return self._by_day[(day.weekday() + 1) % 7]

    def day_for_token(self, symbol: str) -> DayToken:
        """Reverse lookup: the day on which *symbol* is claimable."""
        try:
            return self._by_symbol[symbol]
        except KeyError:
            raise NotFoundError("day token", symbol) from None


# ---------------------------------------------------------------------------
# Streak multipliers
# ---------------------------------------------------------------------------
class StreakMultiplierTable:
    """Ordered ``(threshold_days, multiplier)`` tiers.

    Thresholds must be strictly ascending positive integers and multipliers
    non-decreasing (and at least 1.0), which makes the lookup monotonic in
    the streak length.
    """

    __slots__ = ("_tiers",)

    def __init__(
        self, tiers: Iterable[tuple[int, float]] = DEFAULT_STREAK_MULTIPLIERS
    ) -> None:
        checked: list[tuple[int, float]] = []
        prev_threshold, prev_mult = 0, BASE_MULTIPLIER
        for threshold, multiplier in tiers:
            if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold <= 0:
                raise ConfigurationError(
                    f"Streak threshold must be a positive integer, got {threshold!r}"
                )
            if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
                raise ConfigurationError(f"Streak multiplier must be a number, got {multiplier!r}")
            multiplier = float(multiplier)
            if not math.isfinite(multiplier):
                raise ConfigurationError(f"Streak multiplier must be finite, got {multiplier!r}")
            if threshold <= prev_threshold:
                raise ConfigurationError(
                    f"Streak thresholds must be strictly ascending ({threshold} after {prev_threshold})"
                )
            if multiplier < prev_mult:
                raise ConfigurationError(
                    f"Streak multiplier {multiplier} at {threshold} days is lower than {prev_mult}"
                )
            checked.append((threshold, multiplier))
            prev_threshold, prev_mult = threshold, multiplier
        self._tiers: tuple[tuple[int, float], ...] = tuple(checked)

    @classmethod
    def from_mapping(cls, raw: Any) -> StreakMultiplierTable:
        """Build from ``{3: 1.2, 5: 1.5}`` or ``[{days: 3, multiplier: 1.2}, ...]``.

        Mapping keys are taken in the order written; out-of-order keys fail
        validation rather than being sorted silently.
        """
        if isinstance(raw, Mapping):
            pairs = list(raw.items())
        elif isinstance(raw, list):
            try:
                pairs = [(e["days"], e["multiplier"]) for e in raw]
            except (KeyError, TypeError) as exc:
                raise ConfigurationError(
                    "streak_multipliers entries need 'days' and 'multiplier'"
                ) from exc
        else:
            raise ConfigurationError("streak_multipliers must be a mapping or list")
        return cls(pairs)

    @property
    def tiers(self) -> tuple[tuple[int, float], ...]:
        return self._tiers

    def multiplier_for_streak(self, streak_length: int) -> float:
        """Highest multiplier whose threshold ≤ *streak_length*, else 1.0."""
        check_count(streak_length, "streak_length")
        multiplier = BASE_MULTIPLIER
        for threshold, tier_mult in self._tiers:
            if threshold > streak_length:
                break
            multiplier = tier_mult
        return multiplier

    def next_multiplier_threshold(self, streak_length: int) -> tuple[int, float] | None:
        """The next tier above the current streak, or None at the top tier."""
        check_count(streak_length, "streak_length")
        for threshold, tier_mult in self._tiers:
            if threshold > streak_length:
                return threshold, tier_mult
        return None

    def days_until_next_multiplier(self, streak_length: int) -> int:
        """Claims still needed to reach the next tier (0 once the top tier is active)."""
        upcoming = self.next_multiplier_threshold(streak_length)
        if upcoming is None:
            return 0
        return upcoming[0] - streak_length

    def streak_reward(self, base_amount: int, streak_length: int) -> int:
        """``floor(base_amount × multiplier)`` for a claim at *streak_length*.

        Decimal arithmetic avoids binary-float drift (e.g. ``10 × 1.7``).
        """
        if isinstance(base_amount, bool) or not isinstance(base_amount, int) or base_amount <= 0:
            raise InvalidInputError(f"base_amount must be a positive integer, got {base_amount!r}")
        multiplier = Decimal(str(self.multiplier_for_streak(streak_length)))
        return int(base_amount * multiplier)

    def quote(self, token: DayToken, streak_length: int) -> ClaimQuote:
        """Claim summary for *token* at *streak_length*."""
        return ClaimQuote(
            day_of_week=token.day_of_week,
            token_symbol=token.symbol,
            token_name=token.name,
            multiplier=self.multiplier_for_streak(streak_length),
            streak_length=streak_length,
            days_until_next_multiplier=self.days_until_next_multiplier(streak_length),
        )
