"""
Shadow Contact Model
====================

Per-peer activity counters derived ONLY from observed test actions.

The model never reads the system under test. If the production code
wipes its contact database, this model still expects every contact the
test added, which is the whole point.

INVARIANTS:
- any >= max(write, recip) for every contact at every point in time
- Updates are max-updates: replaying the same message is a no-op
- Contacts are never deleted
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, Tuple

from ..contracts.base import DuplicateContact, NotFound
from ..contracts.events import (
    PeerRef, ContactInfo, ConversationRef, ConversationMessage, MessageKind
)
from ..temporal.sequence import DomainSequence

logger = logging.getLogger(__name__)


class ShadowContactModel:
    """
    Contact counters as seen from one observing surface.

    `owner` is the name of the test client the surface belongs to; it is
    never its own contact and is skipped when raising recipient counters.
    """

    def __init__(self, owner: str, sequence: DomainSequence):
        self._owner = owner
        self._sequence = sequence
        # Insertion order is the tie-break for equal sort keys
        self._contacts: Dict[str, ContactInfo] = {}

    @property
    def owner(self) -> str:
        return self._owner

    def __len__(self) -> int:
        return len(self._contacts)

    def __contains__(self, name: str) -> bool:
        return name in self._contacts

    def record_contact_added(self, peer: PeerRef) -> ContactInfo:
        """Create a contact with every counter at the current domain seq."""
        if peer.name in self._contacts:
            raise DuplicateContact(
                f"Contact {peer.name} added twice for {self._owner}",
                owner=self._owner,
                contact=peer.name
            )
        now_seq = self._sequence.current
        info = ContactInfo(
            root_key=peer.root_key,
            name=peer.name,
            any=now_seq,
            write=now_seq,
            recip=now_seq
        )
        self._contacts[peer.name] = info
        logger.debug("%s: added contact %s at seq %d", self._owner, peer.name, now_seq)
        return info

    def record_message_delivered(
        self,
        conversation: ConversationRef,
        message: ConversationMessage
    ) -> None:
        """
        Raise author and recipient counters for one delivered message.

        Every name is resolved before any counter moves: an unknown
        participant raises NotFound and leaves the model untouched.
        """
        self._contacts.update(self._raised(conversation, (message,)))

    def record_welcome_backlog(self, conversation: ConversationRef) -> None:
        """Replay every backlog message in store order, all or nothing."""
        self._contacts.update(self._raised(conversation, conversation.backlog))

    def _raised(
        self,
        conversation: ConversationRef,
        messages: Iterable[ConversationMessage]
    ) -> Dict[str, ContactInfo]:
        """Updated copies of every contact the messages touch."""
        staged: Dict[str, ContactInfo] = {}

        def current(name: str) -> ContactInfo:
            return staged[name] if name in staged else self.lookup(name)

        for message in messages:
            if message.kind is not MessageKind.MESSAGE:
                continue
            seq = message.seq
            if message.author != self._owner:
                staged[message.author] = current(message.author).raise_write(seq)
            for participant in conversation.participants:
                if participant == self._owner or participant == message.author:
                    continue
                staged[participant] = current(participant).raise_recip(seq)
        return staged

    def lookup(self, name: str) -> ContactInfo:
        info = self._contacts.get(name)
        if info is None:
            raise NotFound(
                f"{self._owner} has no contact named {name}; "
                f"was the contact added in an earlier step?",
                owner=self._owner,
                contact=name
            )
        return info

    def snapshot(self) -> Tuple[ContactInfo, ...]:
        """All contacts in insertion order (immutable copy)."""
        return tuple(self._contacts.values())
