"""
Observability & Test Log
========================

Per-actor structured test log.

RESPONSIBILITY: Record what the oracle saw, in canonical form, so a
human can diff expected against observed after a run.

WHAT THIS LAYER MUST NOT DO:
============================
- Decide pass/fail (the verification engine does)
- Filter or rewrite events
- Modify oracle state

EVENT KINDS:
============
- queryCompleted(query_id, ordered canonical keys)
- queryUpdateSplice(query_id, delta description)
- error(code, message, context) for every reported failure
"""

from __future__ import annotations
import hashlib
import logging
from typing import List, Optional, Sequence

from ..contracts.base import OracleError, Timestamp
from ..contracts.events import AuditEventType, AuditLogEntry, SpliceDelta

logger = logging.getLogger(__name__)


class TestModaLogger:
    """
    Append-only log collector for one moda actor.

    Entries are frozen; readers get copies.
    """

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(self, actor_name: str):
        self._actor_name = actor_name
        self._entries: List[AuditLogEntry] = []
        self._sequence: int = 0

    def _append(
        self,
        event_type: AuditEventType,
        entity_id: Optional[str],
        payload: Sequence[str] = (),
        metadata: Sequence = ()
    ) -> AuditLogEntry:
        self._sequence += 1
        entry_hash = hashlib.sha256(
            f"{self._actor_name}|{self._sequence}|{event_type.value}|{entity_id}".encode()
        ).hexdigest()[:16]
        entry = AuditLogEntry(
            entry_id=f"log_{entry_hash}",
            event_type=event_type,
            timestamp=Timestamp.now(),
            actor=self._actor_name,
            entity_id=entity_id,
            payload=tuple(payload),
            metadata=tuple(metadata)
        )
        self._entries.append(entry)
        return entry

    def query_completed(self, query_id: str, keys: Sequence[str]) -> AuditLogEntry:
        logger.debug("%s queryCompleted %s %s", self._actor_name, query_id, list(keys))
        return self._append(AuditEventType.QUERY_COMPLETED, query_id, keys)

    def query_update_splice(self, query_id: str, delta: SpliceDelta) -> AuditLogEntry:
        logger.debug("%s queryUpdateSplice %s %s", self._actor_name, query_id, delta.describe())
        return self._append(
            AuditEventType.QUERY_UPDATE_SPLICE,
            query_id,
            (delta.describe(),),
            (
                ("index", str(delta.index)),
                ("removed_count", str(delta.removed_count)),
            )
        )

    def error(self, error: OracleError, entity_id: Optional[str] = None) -> AuditLogEntry:
        record = error.to_error().with_context("actor", self._actor_name)
        logger.warning("%s %s: %s", self._actor_name, record.code.name, record.message)
        return self._append(
            AuditEventType.ERROR,
            entity_id,
            (record.code.name, record.message),
            record.context
        )

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        entity_id: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if entity_id:
            entries = [e for e in entries if e.entity_id == entity_id]
        return list(entries)

    @property
    def actor_name(self) -> str:
        return self._actor_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


__all__ = [
    'TestModaLogger',
]
