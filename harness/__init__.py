"""
Moda Test Harness

ARCHITECTURAL BOUNDARY:
=======================
This package wires the oracle to the outside world: the test-step
scheduler on one side and the production bridge on the other.

DIRECTION OF DEPENDENCY:
========================
harness -> oracle

NEVER:
- oracle importing from harness
- harness reaching into production bridge internals
"""

from .scheduler import RecordingScheduler, StepRecord
from .actor import ModaTestActor, ActorRegistry

__all__ = [
    'RecordingScheduler',
    'StepRecord',
    'ModaTestActor',
    'ActorRegistry',
]
