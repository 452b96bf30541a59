"""
Avolve — Progression & Unlock Evaluator
=========================================
Decides which platform features a member has unlocked, how close they are
to the next one, which progression phase they are in, and what today's
daily token claim is worth.  Pure computation over caller-supplied
snapshots: the data layer fetches balances and milestones, this package
never touches the database.

Package layout::

    avolve/
    ├── config.py          # YAML → typed config + progression rules
    ├── constants.py       # Phase order, streak tiers, token hierarchy
    ├── errors.py          # ConfigurationError / NotFoundError / InvalidInputError
    ├── data/
    │   └── progression.yaml  # Feature requirements, day tokens, streak tiers
    ├── engine/
    │   ├── models.py      # Immutable value types
    │   ├── catalog.py     # Requirement catalog
    │   ├── unlocks.py     # Unlock evaluator
    │   ├── schedule.py    # Day-token schedule + streak multipliers
    │   ├── phases.py      # Derived progression phase
    │   └── cache.py       # Ledger-invalidated result cache
    └── services/
        └── progression_service.py  # Fail-closed façade for request handlers
"""

__version__ = "0.1.0"
