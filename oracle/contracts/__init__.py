"""
Oracle Contracts

Shared immutable types and external interfaces. Every other layer
imports from here and never from another layer's implementation.
"""

from .base import (
    ErrorCode,
    Error,
    Timestamp,
    OracleError,
    ProtocolViolation,
    DoubleCompletionError,
    MismatchError,
    NotFound,
    UnresolvedIdentifier,
    DuplicateContact,
    DuplicateConversation,
    UnknownCriterion,
)
from .events import (
    PeerRef,
    MessageKind,
    ConversationMessage,
    ConversationRef,
    ContactInfo,
    ConversationInfo,
    SpliceDelta,
    AuditEventType,
    AuditLogEntry,
)
from .scheduling import (
    Expectation,
    StepScheduler,
)
from .production import (
    LiveSetHandle,
    NotificationSink,
    ModaBridge,
    NameResolver,
)

__all__ = [
    # Errors
    'ErrorCode', 'Error', 'Timestamp', 'OracleError', 'ProtocolViolation',
    'DoubleCompletionError', 'MismatchError', 'NotFound',
    'UnresolvedIdentifier', 'DuplicateContact', 'DuplicateConversation',
    'UnknownCriterion',
    # Events
    'PeerRef', 'MessageKind', 'ConversationMessage', 'ConversationRef',
    'ContactInfo', 'ConversationInfo', 'SpliceDelta',
    'AuditEventType', 'AuditLogEntry',
    # Scheduling
    'Expectation', 'StepScheduler',
    # Production
    'LiveSetHandle', 'NotificationSink', 'ModaBridge', 'NameResolver',
]
