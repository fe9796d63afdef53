"""
Base Contracts and Shared Types

Foundational types used across all oracle layers.

BOUNDARY ENFORCEMENT:
=====================
- Error records are frozen dataclasses: errors are data first
- Every exception raised by the oracle carries an explicit ErrorCode
- No silent fallbacks - every failure mode is enumerated here
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for oracle failures.
    No silent fallbacks - every error state is enumerated.
    """
    # Protocol errors (production misbehaved)
    PROTOCOL_VIOLATION = auto()
    DOUBLE_COMPLETION = auto()

    # Verification errors
    ORDER_MISMATCH = auto()

    # Test setup errors (a setup action is missing or repeated)
    NOT_FOUND = auto()
    UNRESOLVED_IDENTIFIER = auto()
    DUPLICATE_CONTACT = auto()
    DUPLICATE_CONVERSATION = auto()
    UNKNOWN_CRITERION = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


# =============================================================================
# EXCEPTION TAXONOMY
# =============================================================================

class OracleError(Exception):
    """
    Base exception for every failure surfaced by the oracle.

    Carries an ErrorCode and key/value context so the failure can be
    recorded in the test log as an Error record.
    """
    code = ErrorCode.PROTOCOL_VIOLATION

    def __init__(self, message: str, **context: object):
        super().__init__(message)
        self.message = message
        self.context = tuple((k, str(v)) for k, v in sorted(context.items()))

    def to_error(self) -> Error:
        return Error(
            code=self.code,
            message=self.message,
            timestamp=datetime.now(timezone.utc),
            context=self.context
        )


class ProtocolViolation(OracleError):
    """The production system emitted an event it must not emit."""
    code = ErrorCode.PROTOCOL_VIOLATION


class DoubleCompletionError(ProtocolViolation):
    """A live query was completed more than once."""
    code = ErrorCode.DOUBLE_COMPLETION


class MismatchError(OracleError):
    """
    Observed ordering differs from the shadow-derived expectation.

    Both sequences are kept verbatim for diff inspection.
    """
    code = ErrorCode.ORDER_MISMATCH

    def __init__(self, query_id: str, expected: Sequence[str], observed: Sequence[str]):
        self.query_id = query_id
        self.expected = tuple(expected)
        self.observed = tuple(observed)
        super().__init__(
            f"Query {query_id} completed with {list(self.observed)}, "
            f"expected {list(self.expected)}",
            query_id=query_id,
            expected=",".join(self.expected),
            observed=",".join(self.observed),
        )


class NotFound(OracleError):
    code = ErrorCode.NOT_FOUND


class UnresolvedIdentifier(OracleError):
    code = ErrorCode.UNRESOLVED_IDENTIFIER


class DuplicateContact(OracleError):
    code = ErrorCode.DUPLICATE_CONTACT


class DuplicateConversation(OracleError):
    code = ErrorCode.DUPLICATE_CONVERSATION


class UnknownCriterion(OracleError):
    code = ErrorCode.UNKNOWN_CRITERION


# =============================================================================
# TEMPORAL TYPES
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable wall-clock timestamp for log entries.
    All timestamps are UTC, never local time.

    Ordering of test actions never uses this type; see DomainSequence.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))
