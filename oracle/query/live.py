"""
Live-Query Verification Engine
==============================

Issues live queries, fixes their expected ordering at issue time, and
checks the asynchronous completion/splice stream against it.

STATE MACHINE (per query):
==========================
CREATED -> AWAITING_COMPLETION -> COMPLETED
any state -> KILLED

RULES:
======
1. The expectation is computed ONCE from a shadow snapshot; later shadow
   changes never recompute it.
2. Splices before completion are synchronization churn and are ignored.
3. Completion happens exactly once (DoubleCompletionError otherwise).
4. Any event for a killed or never-issued query, or from the wrong
   namespace, is a ProtocolViolation: reported to the scheduler AND raised.
5. An ordering mismatch is reported as a test failure, not raised.
6. Every splice after completion must have been announced with
   expect_splice; an unannounced splice is reported as a mismatch.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from ..contracts.base import (
    OracleError, ProtocolViolation, DoubleCompletionError, MismatchError, NotFound
)
from ..contracts.events import AuditEventType, SpliceDelta
from ..contracts.production import LiveSetHandle
from ..contracts.scheduling import Expectation, StepScheduler
from ..observability import TestModaLogger
from .comparators import SortCriterion, expected_order
from .translator import IdentifierTranslator

logger = logging.getLogger(__name__)


class QueryState(Enum):
    CREATED = "created"
    AWAITING_COMPLETION = "awaiting_completion"
    COMPLETED = "completed"
    KILLED = "killed"


@dataclass
class LiveQuery:
    """
    One active subscription.

    expected_keys is fixed at creation. observed_keys tracks the
    production ordering after completion, with splices applied.
    """
    query_id: str
    namespace: str
    criterion: SortCriterion
    expected_keys: Tuple[str, ...]
    state: QueryState = QueryState.CREATED
    completed: bool = False
    passed: Optional[bool] = None
    observed_keys: List[str] = field(default_factory=list)
    handle: Optional[LiveSetHandle] = None
    expectation: Optional[Expectation] = None


class LiveQueryEngine:
    """
    Verification engine for one actor's live queries.

    Never blocks: issue_query returns right after invoking the production
    API and resumes when the production side pushes events.
    """

    def __init__(
        self,
        actor_name: str,
        translator: IdentifierTranslator,
        scheduler: StepScheduler,
        test_logger: TestModaLogger
    ):
        self._actor_name = actor_name
        self._translator = translator
        self._scheduler = scheduler
        self._log = test_logger
        self._queries: Dict[str, LiveQuery] = {}
        self._pending_splices: Dict[str, Deque[Expectation]] = {}

    # -------------------------------------------------------------------------
    # Issue / kill
    # -------------------------------------------------------------------------

    def issue_query(
        self,
        query_id: str,
        namespace: str,
        criterion: SortCriterion,
        snapshot: Iterable[Any],
        invoke: Callable[[], LiveSetHandle]
    ) -> LiveQuery:
        """
        Fix the expectation, register it, then invoke the production API.

        The query is registered before `invoke` runs because production
        may deliver completion synchronously from inside the call.
        """
        if query_id in self._queries:
            raise ValueError(f"Query id {query_id} already issued by {self._actor_name}")

        query = LiveQuery(
            query_id=query_id,
            namespace=namespace,
            criterion=criterion,
            expected_keys=expected_order(snapshot, criterion)
        )
        self._queries[query_id] = query
        query.expectation = self._scheduler.expect(
            self._actor_name,
            AuditEventType.QUERY_COMPLETED,
            query_id,
            query.expected_keys
        )
        query.state = QueryState.AWAITING_COMPLETION
        logger.debug(
            "%s issuing %s by %s, expecting %s",
            self._actor_name, query_id, criterion.value, list(query.expected_keys)
        )

        query.handle = invoke()
        return query

    def kill(self, query_id: str, unsubscribe: Callable[[LiveSetHandle], None]) -> LiveQuery:
        """
        Unsubscribe and keep the query as KILLED.

        The query is retained so any later delivery is recognized and
        raised as a ProtocolViolation rather than looking like an
        unknown query.
        """
        query = self._queries.get(query_id)
        if query is None or query.state is QueryState.KILLED:
            raise NotFound(
                f"No live query {query_id} to kill for {self._actor_name}",
                query_id=query_id
            )
        query.state = QueryState.KILLED
        self._pending_splices.pop(query_id, None)
        if query.handle is not None:
            unsubscribe(query.handle)
        return query

    # -------------------------------------------------------------------------
    # Production events
    # -------------------------------------------------------------------------

    def on_completion(
        self,
        query_id: str,
        observed_local: Sequence[str],
        namespace: Optional[str] = None
    ) -> bool:
        """
        Verify the initial result set. Returns True when it matches.

        `namespace` is the one the production live set reports; when given
        it must be the namespace the query was issued in.
        """
        query = self._resolve(query_id, "completion", namespace)
        if query.completed:
            raise self._surface(DoubleCompletionError(
                f"Query {query_id} completed twice",
                query_id=query_id
            ), query_id)

        observed = self._translate(query, observed_local)
        self._log.query_completed(query_id, observed)

        query.completed = True
        query.state = QueryState.COMPLETED
        query.observed_keys = list(observed)

        if observed == query.expected_keys:
            query.passed = True
            self._scheduler.fulfill(query.expectation)
        else:
            query.passed = False
            self._report(MismatchError(query_id, query.expected_keys, observed), query_id)
        return query.passed

    def on_incremental_change(
        self,
        query_id: str,
        index: int,
        removed_count: int,
        added_local: Sequence[str],
        namespace: Optional[str] = None
    ) -> Optional[SpliceDelta]:
        """
        Apply a splice to a completed query's observed ordering.

        Returns None (ignored) when the query has not completed yet. A
        splice nobody announced with expect_splice fails the run.
        """
        query = self._resolve(query_id, "splice", namespace)
        if not query.completed:
            logger.debug("%s ignoring pre-completion splice on %s", self._actor_name, query_id)
            return None

        if index < 0 or removed_count < 0 or index + removed_count > len(query.observed_keys):
            raise self._surface(ProtocolViolation(
                f"Splice on {query_id} out of range: index={index} "
                f"removed={removed_count} size={len(query.observed_keys)}",
                query_id=query_id,
                index=index,
                removed_count=removed_count
            ), query_id)

        added = self._translate(query, added_local)
        removed = tuple(query.observed_keys[index:index + removed_count])
        query.observed_keys[index:index + removed_count] = list(added)

        delta = SpliceDelta(
            index=index,
            removed_count=removed_count,
            removed_keys=removed,
            added_keys=added
        )
        self._log.query_update_splice(query_id, delta)
        self._check_splice(query_id, delta)
        return delta

    def on_items_modified(
        self,
        query_id: str,
        items: Sequence[str],
        namespace: Optional[str] = None
    ) -> None:
        """Item payload changes carry no ordering; only liveness is checked."""
        self._resolve(query_id, "items-modified", namespace)

    # -------------------------------------------------------------------------
    # Splice expectations
    # -------------------------------------------------------------------------

    def expect_splice(self, query_id: str, delta: SpliceDelta) -> Expectation:
        """Register the next splice the test expects on a live query."""
        query = self._queries.get(query_id)
        if query is None or query.state is QueryState.KILLED:
            raise NotFound(
                f"No live query {query_id} to expect a splice on",
                query_id=query_id
            )
        expectation = self._scheduler.expect(
            self._actor_name,
            AuditEventType.QUERY_UPDATE_SPLICE,
            query_id,
            (delta.describe(),)
        )
        self._pending_splices.setdefault(query_id, deque()).append(expectation)
        return expectation

    def _check_splice(self, query_id: str, delta: SpliceDelta) -> None:
        pending = self._pending_splices.get(query_id)
        observed = (delta.describe(),)
        if not pending:
            self._report(MismatchError(query_id, (), observed), query_id)
            return
        expectation = pending.popleft()
        if expectation.payload == observed:
            self._scheduler.fulfill(expectation)
        else:
            self._report(MismatchError(query_id, expectation.payload, observed), query_id)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _resolve(self, query_id: str, event: str, namespace: Optional[str]) -> LiveQuery:
        query = self._queries.get(query_id)
        if query is None:
            raise self._surface(ProtocolViolation(
                f"{event} delivered for query {query_id} that was never issued",
                query_id=query_id,
                event=event
            ), query_id)
        if query.state is QueryState.KILLED:
            raise self._surface(ProtocolViolation(
                f"{event} delivered for query {query_id} after it was killed",
                query_id=query_id,
                event=event
            ), query_id)
        if namespace is not None and namespace != query.namespace:
            raise self._surface(ProtocolViolation(
                f"{event} for query {query_id} arrived from namespace {namespace}, "
                f"issued in {query.namespace}",
                query_id=query_id,
                event=event,
                namespace=namespace
            ), query_id)
        return query

    def _translate(self, query: LiveQuery, local_ids: Sequence[str]) -> Tuple[str, ...]:
        try:
            return self._translator.translate_all(query.namespace, local_ids)
        except OracleError as exc:
            raise self._surface(exc, query.query_id)

    def _surface(self, error: OracleError, query_id: str) -> OracleError:
        """
        Report a fatal error, then hand it back to raise.

        The error is raised into the production call stack, which may
        swallow it; the scheduler failure is what fails the run.
        """
        self._report(error, query_id)
        return error

    def _report(self, error: OracleError, query_id: str) -> None:
        self._log.error(error, query_id)
        self._scheduler.report_failure(self._actor_name, error)
