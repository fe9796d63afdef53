"""
Event and State Contracts

Immutable data types flowing between the test actions, the shadow
models, the verification engine and the test log.

INVARIANTS:
- ContactInfo.any >= max(write, recip)
- ConversationInfo.any >= created
- All records are frozen; updates produce new instances
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum

from .base import Timestamp


# =============================================================================
# TEST ACTION INPUTS
# =============================================================================

@dataclass(frozen=True)
class PeerRef:
    """A test client as seen by actions: display name plus root public key."""
    name: str
    root_key: str

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("PeerRef name must be a non-empty string")
        if not self.root_key or not isinstance(self.root_key, str):
            raise ValueError("PeerRef root_key must be a non-empty string")


class MessageKind(Enum):
    """Backlog entry kinds. Only MESSAGE affects activity counters."""
    MESSAGE = "message"
    JOIN = "join"


@dataclass(frozen=True)
class ConversationMessage:
    """One entry in a conversation backlog, stamped with the domain seq."""
    seq: int
    author: str
    kind: MessageKind = MessageKind.MESSAGE
    text: str = ""


@dataclass(frozen=True)
class ConversationRef:
    """
    The test framework's view of a conversation.

    participants are peer names; backlog is in store order.
    """
    conv_id: str
    participants: Tuple[str, ...]
    backlog: Tuple[ConversationMessage, ...] = field(default_factory=tuple)

    def with_message(self, message: ConversationMessage) -> ConversationRef:
        return ConversationRef(
            conv_id=self.conv_id,
            participants=self.participants,
            backlog=self.backlog + (message,)
        )


# =============================================================================
# SHADOW STATE
# =============================================================================

@dataclass(frozen=True)
class ContactInfo:
    """
    Shadow activity counters for one known peer.

    any   - latest seq at which the peer was involved in anything
    write - latest seq at which the peer authored a message
    recip - latest seq at which the peer was a non-authoring recipient
    """
    root_key: str
    name: str
    any: int
    write: int
    recip: int

    @property
    def canonical_key(self) -> str:
        return self.root_key

    def raise_write(self, seq: int) -> ContactInfo:
        return ContactInfo(
            root_key=self.root_key,
            name=self.name,
            any=max(self.any, seq),
            write=max(self.write, seq),
            recip=self.recip
        )

    def raise_recip(self, seq: int) -> ContactInfo:
        return ContactInfo(
            root_key=self.root_key,
            name=self.name,
            any=max(self.any, seq),
            write=self.write,
            recip=max(self.recip, seq)
        )


@dataclass(frozen=True)
class ConversationInfo:
    """Shadow state for one conversation the observing surface has joined."""
    conv_id: str
    participants: Tuple[str, ...]
    created: int
    any: int

    @property
    def canonical_key(self) -> str:
        return self.conv_id

    def raise_any(self, seq: int) -> ConversationInfo:
        return ConversationInfo(
            conv_id=self.conv_id,
            participants=self.participants,
            created=self.created,
            any=max(self.any, seq)
        )


# =============================================================================
# LIVE QUERY DELTAS
# =============================================================================

@dataclass(frozen=True)
class SpliceDelta:
    """Canonical description of one splice applied to a completed query."""
    index: int
    removed_count: int
    removed_keys: Tuple[str, ...]
    added_keys: Tuple[str, ...]

    def describe(self) -> str:
        parts = [f"@{self.index}"]
        if self.removed_keys:
            parts.append("-[" + ",".join(self.removed_keys) + "]")
        if self.added_keys:
            parts.append("+[" + ",".join(self.added_keys) + "]")
        return " ".join(parts)


# =============================================================================
# AUDIT CONTRACTS
# =============================================================================

class AuditEventType(Enum):
    """Event kinds written to the per-actor test log."""
    QUERY_COMPLETED = "queryCompleted"
    QUERY_UPDATE_SPLICE = "queryUpdateSplice"
    ERROR = "error"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable test log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    actor: str
    entity_id: Optional[str] = None
    payload: Tuple[str, ...] = field(default_factory=tuple)
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
