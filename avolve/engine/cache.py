"""
avolve.engine.cache — Per-User Unlock Result Cache
====================================================

Optional memoisation of :func:`~avolve.engine.unlocks.evaluate_all` output.

Unlock state is always *derived*; this cache only remembers a derivation
until the ledger says it is stale.  Invalidation is explicit and driven
by ledger mutation events (balance change, milestone completion, streak
update), never by a writable "unlocked" flag.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Hashable, Mapping
from typing import Any

from avolve.engine.catalog import RequirementCatalog
from avolve.engine.models import ProgressSnapshot, UnlockResult
from avolve.engine.unlocks import evaluate_all

logger = logging.getLogger(__name__)

__all__ = ["LEDGER_EVENTS", "UnlockCache"]

# Ledger events that make one user's cached results stale
USER_EVENTS: frozenset[str] = frozenset({
    "token_balance_changed",
    "milestone_completed",
    "streak_updated",
})

# Events that make every cached result stale
GLOBAL_EVENTS: frozenset[str] = frozenset({"catalog_reloaded"})

LEDGER_EVENTS: frozenset[str] = USER_EVENTS | GLOBAL_EVENTS


class UnlockCache:
    """Thread-safe user_id → {feature_key: UnlockResult} cache.

    Two counters guard against a slow snapshot load overwriting an
    invalidation that arrived while it was running: a per-user generation
    (bumped by :meth:`invalidate`) and a global epoch (bumped by
    :meth:`clear`).  Generations are only tracked while a load for that
    user is in flight, so the bookkeeping never outgrows the loads running.

    Usage::

        cache = UnlockCache()
        results = cache.get_or_compute(user_id, fetch_snapshot, catalog)
        ...
        cache.handle_ledger_event({"type": "milestone_completed", "user_id": user_id})
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[Hashable, dict[str, UnlockResult]] = {}
        self._generation: dict[Hashable, int] = {}
        self._inflight: dict[Hashable, int] = {}
        self._epoch = 0
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, user_id: Hashable) -> dict[str, UnlockResult] | None:
        with self._lock:
            cached = self._results.get(user_id)
            return dict(cached) if cached is not None else None

    def get_or_compute(
        self,
        user_id: Hashable,
        loader: Callable[[Hashable], ProgressSnapshot],
        catalog: RequirementCatalog,
    ) -> dict[str, UnlockResult]:
        """Return cached results for *user_id*, evaluating on a miss.

        *loader* fetches a fresh snapshot for the user; it is called outside
        the lock, so a slow data layer never blocks other users.
        """
        with self._lock:
            cached = self._results.get(user_id)
            if cached is not None:
                self._hits += 1
                return dict(cached)
            self._misses += 1
            self._inflight[user_id] = self._inflight.get(user_id, 0) + 1
            stamp = (self._generation.get(user_id, 0), self._epoch)

        try:
            results = evaluate_all(loader(user_id), catalog)
            with self._lock:
                if (self._generation.get(user_id, 0), self._epoch) == stamp:
                    self._results[user_id] = results
                else:
                    logger.debug("Discarding stale results for user %s", user_id)
        finally:
            with self._lock:
                self._finish_load(user_id)
        return dict(results)

    def _finish_load(self, user_id: Hashable) -> None:
        # caller holds the lock
        remaining = self._inflight[user_id] - 1
        if remaining:
            self._inflight[user_id] = remaining
        else:
            del self._inflight[user_id]
            self._generation.pop(user_id, None)

    @property
    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._results), "hits": self._hits, "misses": self._misses}

    # -------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------
    def invalidate(self, user_id: Hashable) -> None:
        with self._lock:
            self._results.pop(user_id, None)
            if user_id in self._inflight:
                self._generation[user_id] = self._generation.get(user_id, 0) + 1

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
            self._generation.clear()
            self._epoch += 1

    def handle_ledger_event(self, payload: Mapping[str, Any] | str) -> None:
        """Invalidate in response to a ledger mutation event.

        *payload* is a dict or its JSON encoding, e.g.
        ``{"type": "token_balance_changed", "user_id": "u-1"}``.
        """
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError:
                logger.warning("Invalid ledger event payload (not JSON): %s", payload)
                return
        if not isinstance(payload, Mapping):
            logger.warning("Ledger event payload must be an object: %r", payload)
            return

        event_type = payload.get("type")
        if event_type in GLOBAL_EVENTS:
            logger.info("Unlock cache cleared on %s", event_type)
            self.clear()
        elif event_type in USER_EVENTS:
            user_id = payload.get("user_id")
            if isinstance(user_id, bool) or not isinstance(user_id, (str, int)):
                logger.warning(
                    "Ledger event %s has no usable user_id (%r) — ignoring", event_type, user_id
                )
                return
            logger.debug("Unlock cache invalidated for user %s on %s", user_id, event_type)
            self.invalidate(user_id)
        else:
            logger.warning("Unknown ledger event type: %s — ignoring", event_type)
