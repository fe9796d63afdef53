"""
Shadow Conversation Model
=========================

Conversations the observing surface has been welcomed into, with the
latest activity seq per conversation. Backs conversation live queries.
"""

from __future__ import annotations
from typing import Dict, Tuple

from ..contracts.base import DuplicateConversation, NotFound
from ..contracts.events import (
    ConversationRef, ConversationMessage, ConversationInfo, MessageKind
)
from ..temporal.sequence import DomainSequence


class ShadowConversationModel:

    def __init__(self, owner: str, sequence: DomainSequence):
        self._owner = owner
        self._sequence = sequence
        self._conversations: Dict[str, ConversationInfo] = {}

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conv_id: str) -> bool:
        return conv_id in self._conversations

    def record_welcome(self, conversation: ConversationRef) -> ConversationInfo:
        """
        Register a conversation at the current domain seq.

        The backlog's messages are folded into `any`; the welcome itself
        happens at the current seq, which is never earlier than the backlog.
        """
        if conversation.conv_id in self._conversations:
            raise DuplicateConversation(
                f"{self._owner} welcomed into {conversation.conv_id} twice",
                owner=self._owner,
                conv_id=conversation.conv_id
            )
        now_seq = self._sequence.current
        info = ConversationInfo(
            conv_id=conversation.conv_id,
            participants=tuple(conversation.participants),
            created=now_seq,
            any=now_seq
        )
        for message in conversation.backlog:
            if message.kind is MessageKind.MESSAGE:
                info = info.raise_any(message.seq)
        self._conversations[conversation.conv_id] = info
        return info

    def record_message(
        self,
        conversation: ConversationRef,
        message: ConversationMessage
    ) -> ConversationInfo:
        info = self.lookup(conversation.conv_id)
        if message.kind is MessageKind.MESSAGE:
            info = info.raise_any(message.seq)
            self._conversations[conversation.conv_id] = info
        return info

    def lookup(self, conv_id: str) -> ConversationInfo:
        info = self._conversations.get(conv_id)
        if info is None:
            raise NotFound(
                f"{self._owner} was never welcomed into conversation {conv_id}",
                owner=self._owner,
                conv_id=conv_id
            )
        return info

    def snapshot(self) -> Tuple[ConversationInfo, ...]:
        return tuple(self._conversations.values())

    def involving(self, peer_name: str) -> Tuple[ConversationInfo, ...]:
        """Conversations that list `peer_name` as a participant."""
        return tuple(
            info for info in self._conversations.values()
            if peer_name in info.participants
        )
