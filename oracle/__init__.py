"""
Moda Live-Query Oracle

This package implements a test oracle for the moda live-query layer.
It keeps a shadow model of expected state built ONLY from the actions a
test reports, predicts the exact ordered output of live queries from
that model, and verifies the production notification stream against
the prediction.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Immutable data types, error taxonomy, external interfaces
   - MUST NOT: Depend on any other oracle layer

2. TEMPORAL ORDERING (temporal/)
   - Injected domain-wide sequence counter
   - MUST NOT: Read ambient global state

3. SHADOW MODELS (shadow/)
   - Responsibility: Contact counters and joined conversations
   - Allowed inputs: Test action notifications
   - MUST NOT: Read the system under test (no circular validation)

4. QUERY & VERIFICATION (query/)
   - Responsibility: Comparators, identifier translation, live queries
   - Allowed inputs: Shadow snapshots, production notifications
   - MUST NOT: Recompute an issued expectation

5. OBSERVABILITY (observability/)
   - Responsibility: Per-actor structured test log
   - MUST NOT: Decide pass/fail

CONSTRAINTS ENFORCED:
=====================
- Shadow state only grows through max-updates
- Expectations are fixed at issue time
- Explicit errors: protocol violations raise, mismatches are reported
- Single-threaded, event-driven, no polling
"""

from .config import OracleConfig

__all__ = [
    'OracleConfig',
]
