"""
Recording Scheduler
===================

In-memory implementation of the scheduling framework boundary.

GUARANTEES:
- Every action advances the domain sequence exactly once
- Expectations and failures are recorded, never dropped
- Deterministic: same actions in same order -> same records
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Tuple, TypeVar

from oracle.contracts.base import OracleError
from oracle.contracts.events import AuditEventType
from oracle.contracts.scheduling import Expectation, StepScheduler
from oracle.temporal.sequence import DomainSequence

T = TypeVar('T')


@dataclass(frozen=True)
class StepRecord:
    """One executed test action."""
    step_index: int
    seq: int
    actor: str
    verb: str
    target: str


class RecordingScheduler(StepScheduler):
    """
    Runs actions inline and records expectations for later inspection.

    `unmet()` plays the role of a step timeout: anything still listed
    there when the test ends was never observed.
    """

    def __init__(self, sequence: Optional[DomainSequence] = None):
        self._sequence = sequence or DomainSequence()
        self._steps: List[StepRecord] = []
        self._expectations: Dict[str, Expectation] = {}
        self._fulfilled: Set[str] = set()
        self._failures: List[Tuple[str, OracleError]] = []

    @property
    def sequence(self) -> DomainSequence:
        return self._sequence

    def action(self, actor: str, verb: str, target: str, fn: Callable[[], T]) -> T:
        seq = self._sequence.advance()
        self._steps.append(StepRecord(
            step_index=len(self._steps),
            seq=seq,
            actor=actor,
            verb=verb,
            target=target
        ))
        return fn()

    def expect(
        self,
        actor: str,
        event_type: AuditEventType,
        key: str,
        payload: Tuple[str, ...] = ()
    ) -> Expectation:
        expectation = Expectation(
            expectation_id=f"exp_{len(self._expectations) + 1}",
            actor=actor,
            event_type=event_type,
            key=key,
            payload=tuple(payload)
        )
        self._expectations[expectation.expectation_id] = expectation
        return expectation

    def fulfill(self, expectation: Expectation) -> None:
        if expectation.expectation_id not in self._expectations:
            raise ValueError(f"Unknown expectation {expectation.expectation_id}")
        if expectation.expectation_id in self._fulfilled:
            raise ValueError(f"Expectation {expectation.expectation_id} fulfilled twice")
        self._fulfilled.add(expectation.expectation_id)

    def report_failure(self, actor: str, error: OracleError) -> None:
        self._failures.append((actor, error))

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def steps(self) -> List[StepRecord]:
        return list(self._steps)

    @property
    def expectations(self) -> List[Expectation]:
        return list(self._expectations.values())

    @property
    def failures(self) -> List[Tuple[str, OracleError]]:
        return list(self._failures)

    def unmet(self) -> List[Expectation]:
        return [
            e for e in self._expectations.values()
            if e.expectation_id not in self._fulfilled
        ]

    @property
    def passed(self) -> bool:
        return not self._failures and not self.unmet()
