"""
avolve.errors — Error Taxonomy
================================

Every failure inside the progression core is immediate and synchronous;
nothing here is retryable because the core performs no I/O.

* :class:`ConfigurationError` — the static catalog / schedule is malformed
  or a lookup names something the catalog does not contain.
* :class:`InvalidInputError` — a caller-supplied snapshot or argument is
  malformed.  Values are never clamped into range.
"""

from __future__ import annotations

__all__ = ["AvolveError", "ConfigurationError", "InvalidInputError", "NotFoundError"]


class AvolveError(Exception):
    """Base class for all progression-core errors."""


class ConfigurationError(AvolveError, ValueError):
    """Static configuration is missing, malformed, or inconsistent."""


class NotFoundError(ConfigurationError, LookupError):
    """A feature key or token symbol is absent from the static catalog."""

    def __init__(self, kind: str, key: object) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"Unknown {kind}: {key!r}")


class InvalidInputError(AvolveError, ValueError):
    """A snapshot or argument supplied by the caller is malformed."""
