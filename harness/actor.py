"""
Moda Test Actor
===============

Binds one oracle instance to one moda bridge/worker pair.

There is one actor per bridge. A simulated desktop UI with several tabs,
each with its own bridge, needs several actors, each with its own shadow
models scoped to what that surface has seen.

WIRING:
=======
test actions  -> on_* hooks  -> shadow models
do_* actions  -> scheduler   -> verification engine -> production bridge
bridge events -> NotificationSink methods -> verification engine
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from oracle.config import OracleConfig
from oracle.contracts.events import (
    PeerRef, ContactInfo, ConversationRef, ConversationMessage, SpliceDelta
)
from oracle.contracts.production import (
    LiveSetHandle, ModaBridge, NameResolver, NotificationSink
)
from oracle.contracts.scheduling import Expectation, StepScheduler
from oracle.observability import TestModaLogger
from oracle.query.comparators import parse_conversation_criterion, parse_peep_criterion
from oracle.query.live import LiveQuery, LiveQueryEngine
from oracle.query.translator import IdentifierTranslator
from oracle.shadow.contacts import ShadowContactModel
from oracle.shadow.conversations import ShadowConversationModel
from oracle.temporal.sequence import DomainSequence

logger = logging.getLogger(__name__)


class ModaTestActor(NotificationSink):
    """
    Oracle for one moda bridge, registered as the sink of every query it
    issues. Live query ids are the names the test gives its queries.
    """

    def __init__(
        self,
        name: str,
        client: PeerRef,
        bridge: ModaBridge,
        resolver: NameResolver,
        scheduler: StepScheduler,
        sequence: DomainSequence,
        config: Optional[OracleConfig] = None
    ):
        if client is None:
            raise ValueError("Moda actors must be associated with a client!")
        self._name = name
        self._client = client
        self._bridge = bridge
        self._scheduler = scheduler
        self._config = config or OracleConfig()

        self.log = TestModaLogger(name)
        self.contacts = ShadowContactModel(client.name, sequence)
        self.conversations = ShadowConversationModel(client.name, sequence)
        self.engine = LiveQueryEngine(
            name,
            IdentifierTranslator(resolver),
            scheduler,
            self.log
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def client(self) -> PeerRef:
        return self._client

    @property
    def bridge(self) -> ModaBridge:
        return self._bridge

    # =========================================================================
    # Notifications from the test client
    # =========================================================================

    def on_adding_contact(self, peer: PeerRef) -> ContactInfo:
        """Invoked during the action step that adds `peer` as a contact."""
        return self.contacts.record_contact_added(peer)

    def on_receive_conv_welcome(self, conversation: ConversationRef) -> None:
        # Contact updates are all-or-nothing; the welcome itself cannot
        # fail once the duplicate check has passed.
        if conversation.conv_id not in self.conversations:
            self.contacts.record_welcome_backlog(conversation)
        self.conversations.record_welcome(conversation)

    def on_receive_conv_message(
        self,
        conversation: ConversationRef,
        message: ConversationMessage
    ) -> None:
        self.conversations.lookup(conversation.conv_id)
        self.contacts.record_message_delivered(conversation, message)
        self.conversations.record_message(conversation, message)

    # =========================================================================
    # Queries
    # =========================================================================

    def do_query_peeps(self, query_name: str, query: Mapping[str, Any]) -> LiveQuery:
        """
        Issue a live peep query; its completion is checked against the
        contacts known at issue time. Use do_kill_query when done.
        """
        criterion = parse_peep_criterion(query.get("by"))

        def issue() -> LiveQuery:
            return self.engine.issue_query(
                query_name,
                self._config.peep_namespace,
                criterion,
                self.contacts.snapshot(),
                lambda: self._bridge.query_peeps(query, self, query_name)
            )

        return self._scheduler.action(self._name, "create", query_name, issue)

    def do_query_conversations(self, query_name: str, query: Mapping[str, Any]) -> LiveQuery:
        criterion = parse_conversation_criterion(query.get("by", "any"))

        def issue() -> LiveQuery:
            return self.engine.issue_query(
                query_name,
                self._config.conversation_namespace,
                criterion,
                self.conversations.snapshot(),
                lambda: self._bridge.query_conversations(query, self, query_name)
            )

        return self._scheduler.action(self._name, "create", query_name, issue)

    def do_query_peep_conversations(
        self,
        query_name: str,
        peer_name: str,
        query: Mapping[str, Any]
    ) -> LiveQuery:
        """Conversations involving one contact."""
        criterion = parse_conversation_criterion(query.get("by", "any"))
        peer = self.contacts.lookup(peer_name)

        def issue() -> LiveQuery:
            return self.engine.issue_query(
                query_name,
                self._config.conversation_namespace,
                criterion,
                self.conversations.involving(peer_name),
                lambda: self._bridge.query_peep_conversations(
                    peer.root_key, query, self, query_name
                )
            )

        return self._scheduler.action(self._name, "create", query_name, issue)

    def do_kill_query(self, query_name: str) -> LiveQuery:
        """
        Unsubscribe a live query. If the production side keeps sending
        events for it, they are raised as protocol violations.
        """
        return self._scheduler.action(
            self._name,
            "kill",
            query_name,
            lambda: self.engine.kill(query_name, self._bridge.kill_query)
        )

    def expect_query_update_splice(self, query_name: str, delta: SpliceDelta) -> Expectation:
        return self.engine.expect_splice(query_name, delta)

    # =========================================================================
    # Actions
    # =========================================================================

    def do_create_conversation(self, participant_names: Sequence[str], message_text: str) -> None:
        """
        Create a conversation through the moda API.

        Shadow state changes only when the test framework reports the
        resulting welcome via on_receive_conv_welcome.
        """
        root_keys = [self.contacts.lookup(name).root_key for name in participant_names]
        self._scheduler.action(
            self._name,
            "create",
            "conversation",
            lambda: self._bridge.create_conversation(root_keys, message_text)
        )

    # =========================================================================
    # NotificationSink
    # =========================================================================

    def on_items_modified(self, items: Sequence[str], live_set: LiveSetHandle) -> None:
        self.engine.on_items_modified(live_set.data, items, live_set.namespace)

    def on_splice(
        self,
        index: int,
        how_many: int,
        added_items: Sequence[str],
        live_set: LiveSetHandle
    ) -> None:
        self.engine.on_incremental_change(
            live_set.data, index, how_many, added_items, live_set.namespace
        )

    def on_completed(self, live_set: LiveSetHandle) -> None:
        self.engine.on_completion(live_set.data, list(live_set.items), live_set.namespace)


class ActorRegistry:
    """
    Per-test registry enforcing the 1:1 actor/bridge binding.

    Holds no state between test runs; create one per test.
    """

    def __init__(self, scheduler: StepScheduler, sequence: DomainSequence):
        self._scheduler = scheduler
        self._sequence = sequence
        self._actors: Dict[str, ModaTestActor] = {}
        self._bridge_owners: Dict[int, str] = {}

    def create_actor(
        self,
        name: str,
        client: PeerRef,
        bridge: ModaBridge,
        resolver: NameResolver,
        config: Optional[OracleConfig] = None
    ) -> ModaTestActor:
        if name in self._actors:
            raise ValueError(f"Actor {name} already exists")
        owner = self._bridge_owners.get(id(bridge))
        if owner is not None:
            raise ValueError(f"Bridge already bound to actor {owner}")

        actor = ModaTestActor(
            name=name,
            client=client,
            bridge=bridge,
            resolver=resolver,
            scheduler=self._scheduler,
            sequence=self._sequence,
            config=config
        )
        self._actors[name] = actor
        self._bridge_owners[id(bridge)] = name
        logger.debug("bound actor %s to client %s", name, client.name)
        return actor

    def get(self, name: str) -> ModaTestActor:
        return self._actors[name]

    @property
    def actors(self) -> List[ModaTestActor]:
        return list(self._actors.values())
