"""
Scheduling Framework Contracts
==============================

What the oracle needs from the test-step scheduler: a way to run an
action inside a test step, register an expectation, mark it met, and
report a failure.

The scheduler owns step sequencing and timeouts; the oracle only
registers and resolves expectations.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Tuple, TypeVar

from .base import OracleError
from .events import AuditEventType

T = TypeVar('T')


@dataclass(frozen=True)
class Expectation:
    """An event the scheduler should see before the step can pass."""
    expectation_id: str
    actor: str
    event_type: AuditEventType
    key: str
    payload: Tuple[str, ...] = field(default_factory=tuple)


class StepScheduler(ABC):

    @abstractmethod
    def action(self, actor: str, verb: str, target: str, fn: Callable[[], T]) -> T:
        """Run `fn` as the body of a test action and return its result."""
        pass

    @abstractmethod
    def expect(
        self,
        actor: str,
        event_type: AuditEventType,
        key: str,
        payload: Tuple[str, ...] = ()
    ) -> Expectation:
        pass

    @abstractmethod
    def fulfill(self, expectation: Expectation) -> None:
        pass

    @abstractmethod
    def report_failure(self, actor: str, error: OracleError) -> None:
        """Record a test failure without unwinding the caller."""
        pass
