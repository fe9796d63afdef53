"""
Oracle Test Fixtures

Explicit, deterministic stand-ins for the production bridge and the
name resolver. No random generation outside hypothesis strategies.

The fake bridge never emits events on its own: tests drive completion
and splices explicitly, including after a kill, to play a misbehaving
production system.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from oracle.contracts.events import PeerRef, ConversationRef, ConversationMessage
from oracle.contracts.production import (
    LiveSetHandle, ModaBridge, NameResolver, NotificationSink
)
from oracle.temporal.sequence import DomainSequence
from harness.actor import ActorRegistry, ModaTestActor
from harness.scheduler import RecordingScheduler


# =============================================================================
# PEERS (fixed names and keys)
# =============================================================================

ME = PeerRef(name="me", root_key="rk_me")
PEER_X = PeerRef(name="X", root_key="rk_X")
PEER_Y = PeerRef(name="Y", root_key="rk_Y")
PEER_Z = PeerRef(name="Z", root_key="rk_Z")

PEEP_NS = "peeps"
CONV_NS = "convs"


def local_peep(peer: PeerRef) -> str:
    """Local (transient) name the fake production system uses for a peer."""
    return f"local_{peer.name.lower()}"


def local_conv(conv_id: str) -> str:
    return f"local_{conv_id}"


# =============================================================================
# FAKE PRODUCTION SYSTEM
# =============================================================================

class FakeResolver(NameResolver):

    def __init__(self):
        self._names: Dict[Tuple[str, str], str] = {}

    def index(self, namespace: str, local_name: str, full_name: str) -> None:
        self._names[(namespace, local_name)] = full_name

    def index_peer(self, peer: PeerRef) -> str:
        local_name = local_peep(peer)
        self.index(PEEP_NS, local_name, peer.root_key)
        return local_name

    def index_conversation(self, conv_id: str) -> str:
        local_name = local_conv(conv_id)
        self.index(CONV_NS, local_name, conv_id)
        return local_name

    def map_local_name_to_full_name(self, namespace: str, local_name: str) -> Optional[str]:
        return self._names.get((namespace, local_name))


@dataclass
class FakeLiveSet(LiveSetHandle):
    _namespace: str
    _data: Any
    sink: NotificationSink
    query: Mapping[str, Any]
    peep_root_key: Optional[str] = None
    _items: List[str] = field(default_factory=list)
    _completed: bool = False

    @property
    def items(self) -> Sequence[str]:
        return list(self._items)

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def data(self) -> Any:
        return self._data


class FakeBridge(ModaBridge):
    """
    Records every call and lets tests push events.

    If `complete_synchronously` holds local items for a query id, the
    completion is delivered from inside the query call, the way a
    production bridge with a warm cache would.
    """

    def __init__(self, complete_synchronously: Optional[Dict[str, List[str]]] = None):
        self.live_sets: Dict[Any, FakeLiveSet] = {}
        self.killed: List[Any] = []
        self.created_conversations: List[Tuple[Tuple[str, ...], str]] = []
        self._sync = complete_synchronously or {}

    def _open(
        self,
        namespace: str,
        query: Mapping[str, Any],
        sink: NotificationSink,
        data: Any,
        peep_root_key: Optional[str] = None
    ) -> FakeLiveSet:
        live_set = FakeLiveSet(
            _namespace=namespace,
            _data=data,
            sink=sink,
            query=query,
            peep_root_key=peep_root_key
        )
        self.live_sets[data] = live_set
        if data in self._sync:
            self.complete(data, self._sync[data])
        return live_set

    def query_peeps(self, query, sink, data):
        return self._open(PEEP_NS, query, sink, data)

    def query_conversations(self, query, sink, data):
        return self._open(CONV_NS, query, sink, data)

    def query_peep_conversations(self, peep_root_key, query, sink, data):
        return self._open(CONV_NS, query, sink, data, peep_root_key=peep_root_key)

    def kill_query(self, live_set):
        self.killed.append(live_set.data)

    def create_conversation(self, participant_root_keys, message_text):
        self.created_conversations.append((tuple(participant_root_keys), message_text))

    # -- event injection ----------------------------------------------------

    def complete(self, data: Any, local_items: Sequence[str]) -> None:
        live_set = self.live_sets[data]
        live_set._items = list(local_items)
        live_set._completed = True
        live_set.sink.on_completed(live_set)

    def splice(self, data: Any, index: int, how_many: int, added: Sequence[str]) -> None:
        live_set = self.live_sets[data]
        live_set._items[index:index + how_many] = list(added)
        live_set.sink.on_splice(index, how_many, list(added), live_set)

    def modify(self, data: Any, items: Sequence[str]) -> None:
        live_set = self.live_sets[data]
        live_set.sink.on_items_modified(list(items), live_set)


# =============================================================================
# WORLD BUILDER
# =============================================================================

@dataclass
class OracleWorld:
    """One test run: shared sequence, scheduler, and a single actor."""
    sequence: DomainSequence
    scheduler: RecordingScheduler
    registry: ActorRegistry
    bridge: FakeBridge
    resolver: FakeResolver
    actor: ModaTestActor

    def add_contact(self, peer: PeerRef) -> None:
        self.scheduler.action(
            self.actor.name, "add", peer.name,
            lambda: self.actor.on_adding_contact(peer)
        )
        self.resolver.index_peer(peer)

    def welcome(self, conversation: ConversationRef) -> None:
        self.scheduler.action(
            self.actor.name, "welcome", conversation.conv_id,
            lambda: self.actor.on_receive_conv_welcome(conversation)
        )
        self.resolver.index_conversation(conversation.conv_id)

    def deliver(self, conversation: ConversationRef, author: PeerRef, text: str = "hi") -> ConversationRef:
        """Stamp a message with the next seq and deliver it to the actor."""
        seq = self.sequence.advance()
        message = ConversationMessage(seq=seq, author=author.name, text=text)
        updated = conversation.with_message(message)
        self.actor.on_receive_conv_message(updated, message)
        return updated


def make_world(bridge: Optional[FakeBridge] = None) -> OracleWorld:
    sequence = DomainSequence()
    scheduler = RecordingScheduler(sequence)
    registry = ActorRegistry(scheduler, sequence)
    bridge = bridge or FakeBridge()
    resolver = FakeResolver()
    actor = registry.create_actor("moda_me", ME, bridge, resolver)
    return OracleWorld(
        sequence=sequence,
        scheduler=scheduler,
        registry=registry,
        bridge=bridge,
        resolver=resolver,
        actor=actor
    )
