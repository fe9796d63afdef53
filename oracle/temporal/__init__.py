"""
Temporal Ordering
=================

Causal ordering of test actions.

INVARIANTS:
- Every action is stamped from a single strictly increasing counter
- The counter is injected, never global
"""

from .sequence import DomainSequence

__all__ = [
    'DomainSequence',
]
