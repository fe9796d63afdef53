"""
Domain Sequence Counter
=======================

Injectable, strictly increasing counter that timestamps test actions.

GUARANTEES:
- One instance per test run, passed explicitly to every consumer
- Never reads ambient global state
- advance() is the only way the value grows; reset() starts a new run
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class DomainSequence:
    """
    Domain-wide monotonic sequence shared by all actors of one test run.

    The scheduler advances it once per test action; shadow models read
    `current` when they need "now".
    """
    _value: int = 0

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        """Move to the next sequence number and return it."""
        self._value += 1
        return self._value

    def reset(self) -> None:
        self._value = 0

    def __repr__(self) -> str:
        return f"DomainSequence(current={self._value})"
