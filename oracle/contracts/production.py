"""
Production System Contracts
===========================

Interfaces of the system under test, as seen by the oracle.

The oracle never imports the production bridge/worker implementation.
It talks to it only through these interfaces and registers itself as a
NotificationSink, so the production side pushes events and the oracle
never polls.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence


class LiveSetHandle(ABC):
    """
    Live, push-updated result handle returned by a production query.

    items     - current ordered local identifiers
    completed - whether the initial result set has been delivered
    namespace - identifier namespace the items live in
    data      - opaque value passed at query time (the oracle's query id)
    """

    @property
    @abstractmethod
    def items(self) -> Sequence[str]:
        pass

    @property
    @abstractmethod
    def completed(self) -> bool:
        pass

    @property
    @abstractmethod
    def namespace(self) -> str:
        pass

    @property
    @abstractmethod
    def data(self) -> Any:
        pass


class NotificationSink(ABC):
    """
    Observer interface the production query handle calls into.

    One method per event kind; implementations are registered by
    reference with each query.
    """

    @abstractmethod
    def on_items_modified(self, items: Sequence[str], live_set: LiveSetHandle) -> None:
        pass

    @abstractmethod
    def on_splice(
        self,
        index: int,
        how_many: int,
        added_items: Sequence[str],
        live_set: LiveSetHandle
    ) -> None:
        pass

    @abstractmethod
    def on_completed(self, live_set: LiveSetHandle) -> None:
        pass


class ModaBridge(ABC):
    """UI-side query API of the production bridge/worker pair."""

    @abstractmethod
    def query_peeps(
        self,
        query: Mapping[str, Any],
        sink: NotificationSink,
        data: Any
    ) -> LiveSetHandle:
        pass

    @abstractmethod
    def query_conversations(
        self,
        query: Mapping[str, Any],
        sink: NotificationSink,
        data: Any
    ) -> LiveSetHandle:
        pass

    @abstractmethod
    def query_peep_conversations(
        self,
        peep_root_key: str,
        query: Mapping[str, Any],
        sink: NotificationSink,
        data: Any
    ) -> LiveSetHandle:
        pass

    @abstractmethod
    def kill_query(self, live_set: LiveSetHandle) -> None:
        """Unsubscribe; the production side must not emit further events."""
        pass

    @abstractmethod
    def create_conversation(
        self,
        participant_root_keys: Sequence[str],
        message_text: str
    ) -> None:
        pass


class NameResolver(ABC):
    """Local-to-canonical name mapping owned by the production notifier."""

    @abstractmethod
    def map_local_name_to_full_name(
        self,
        namespace: str,
        local_name: str
    ) -> Optional[str]:
        """Return the canonical name, or None if not indexed yet."""
        pass
