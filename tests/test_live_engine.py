"""
Live-Query Verification Engine Tests

AXIOM UNDER TEST:
=================
Expectations are fixed at issue time, completion happens exactly once,
and nothing may arrive for a killed query.
"""

import pytest

from oracle.contracts.base import (
    DoubleCompletionError, MismatchError, NotFound, ProtocolViolation,
    UnresolvedIdentifier, ErrorCode
)
from oracle.contracts.events import AuditEventType, ContactInfo, SpliceDelta
from oracle.observability import TestModaLogger
from oracle.query.comparators import PeepSortCriterion
from oracle.query.live import LiveQueryEngine, QueryState
from oracle.query.translator import IdentifierTranslator
from harness.scheduler import RecordingScheduler

from tests.fixtures import FakeResolver, PEEP_NS


class FakeHandle:
    """Bare handle; the engine only stores it and passes it to unsubscribe."""

    def __init__(self, data):
        self.data = data


@pytest.fixture
def resolver():
    resolver = FakeResolver()
    for name in ("A", "B", "C", "D"):
        resolver.index(PEEP_NS, f"l_{name}", f"rk_{name}")
    return resolver


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def test_log():
    return TestModaLogger("moda_a")


@pytest.fixture
def engine(resolver, scheduler, test_log):
    return LiveQueryEngine("moda_a", IdentifierTranslator(resolver), scheduler, test_log)


def _snapshot():
    return (
        ContactInfo("rk_A", "A", any=5, write=5, recip=5),
        ContactInfo("rk_B", "B", any=9, write=1, recip=9),
        ContactInfo("rk_C", "C", any=9, write=2, recip=9),
    )


def _issue(engine, query_id="q1", criterion=PeepSortCriterion.ANY, snapshot=None):
    return engine.issue_query(
        query_id, PEEP_NS, criterion,
        snapshot if snapshot is not None else _snapshot(),
        lambda: FakeHandle(query_id)
    )


class TestIssue:

    def test_issue_registers_expectation_and_awaits(self, engine, scheduler):
        query = _issue(engine)

        assert query.state is QueryState.AWAITING_COMPLETION
        assert query.expected_keys == ("rk_A", "rk_B", "rk_C")
        assert scheduler.unmet() == [query.expectation]
        assert query.expectation.event_type is AuditEventType.QUERY_COMPLETED
        assert query.expectation.payload == ("rk_A", "rk_B", "rk_C")

    def test_expectation_is_not_recomputed(self, engine):
        snapshot = list(_snapshot())
        query = _issue(engine, snapshot=snapshot)

        snapshot.append(ContactInfo("rk_D", "D", any=1, write=1, recip=1))

        assert query.expected_keys == ("rk_A", "rk_B", "rk_C")

    def test_duplicate_query_id(self, engine):
        _issue(engine)

        with pytest.raises(ValueError):
            _issue(engine)

    def test_synchronous_completion_inside_invoke(self, engine, scheduler):
        def invoke():
            engine.on_completion("q1", ["l_A", "l_B", "l_C"])
            return FakeHandle("q1")

        query = engine.issue_query("q1", PEEP_NS, PeepSortCriterion.ANY, _snapshot(), invoke)

        assert query.state is QueryState.COMPLETED
        assert query.passed is True
        assert scheduler.passed


class TestCompletion:

    def test_matching_order_fulfills(self, engine, scheduler, test_log):
        _issue(engine)

        assert engine.on_completion("q1", ["l_A", "l_B", "l_C"]) is True

        assert scheduler.passed
        entries = test_log.get_entries(AuditEventType.QUERY_COMPLETED)
        assert len(entries) == 1
        assert entries[0].payload == ("rk_A", "rk_B", "rk_C")
        assert entries[0].entity_id == "q1"

    def test_same_members_wrong_order_is_mismatch(self, engine, scheduler, test_log):
        _issue(engine)

        assert engine.on_completion("q1", ["l_A", "l_C", "l_B"]) is False

        (actor, error), = scheduler.failures
        assert actor == "moda_a"
        assert isinstance(error, MismatchError)
        assert error.expected == ("rk_A", "rk_B", "rk_C")
        assert error.observed == ("rk_A", "rk_C", "rk_B")
        assert test_log.get_entries(AuditEventType.ERROR)[0].payload[0] == "ORDER_MISMATCH"
        assert not scheduler.passed

    def test_double_completion(self, engine, scheduler):
        _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])

        with pytest.raises(DoubleCompletionError) as exc_info:
            engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        assert exc_info.value.code == ErrorCode.DOUBLE_COMPLETION
        assert isinstance(exc_info.value, ProtocolViolation)
        assert scheduler.failures == [("moda_a", exc_info.value)]

    def test_completion_in_issued_namespace(self, engine):
        _issue(engine)

        assert engine.on_completion("q1", ["l_A", "l_B", "l_C"], PEEP_NS) is True

    def test_completion_from_other_namespace(self, engine, scheduler):
        query = _issue(engine)

        with pytest.raises(ProtocolViolation):
            engine.on_completion("q1", ["l_A", "l_B", "l_C"], "convs")
        assert query.completed is False
        assert not scheduler.passed

    def test_unresolved_item_is_surfaced(self, engine, test_log):
        _issue(engine)

        with pytest.raises(UnresolvedIdentifier):
            engine.on_completion("q1", ["l_A", "l_unknown"])
        assert test_log.get_entries(AuditEventType.ERROR, entity_id="q1")

    def test_completion_for_unknown_query(self, engine):
        with pytest.raises(ProtocolViolation):
            engine.on_completion("never", [])


class TestSplices:

    def test_splice_before_completion_is_ignored(self, engine, test_log):
        query = _issue(engine)

        assert engine.on_incremental_change("q1", 0, 0, ["l_D"]) is None

        assert query.observed_keys == []
        assert test_log.get_entries(AuditEventType.QUERY_UPDATE_SPLICE) == []

    def test_splice_after_completion_is_applied_and_logged(self, engine, test_log):
        query = _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        engine.expect_splice("q1", SpliceDelta(1, 1, ("rk_B",), ("rk_D",)))

        delta = engine.on_incremental_change("q1", 1, 1, ["l_D"])

        assert delta == SpliceDelta(index=1, removed_count=1, removed_keys=("rk_B",), added_keys=("rk_D",))
        assert query.observed_keys == ["rk_A", "rk_D", "rk_C"]
        assert query.expected_keys == ("rk_A", "rk_B", "rk_C")
        entry, = test_log.get_entries(AuditEventType.QUERY_UPDATE_SPLICE)
        assert entry.payload == ("@1 -[rk_B] +[rk_D]",)

    def test_out_of_range_splice_is_protocol_violation(self, engine):
        _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])

        with pytest.raises(ProtocolViolation):
            engine.on_incremental_change("q1", 2, 5, [])

    def test_expected_splice_fulfilled(self, engine, scheduler):
        _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        engine.expect_splice("q1", SpliceDelta(3, 0, (), ("rk_D",)))

        engine.on_incremental_change("q1", 3, 0, ["l_D"])

        assert scheduler.passed

    def test_unexpected_splice_content_reported(self, engine, scheduler):
        _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        engine.expect_splice("q1", SpliceDelta(0, 0, (), ("rk_D",)))

        engine.on_incremental_change("q1", 3, 0, ["l_D"])

        (_, error), = scheduler.failures
        assert isinstance(error, MismatchError)
        assert error.observed == ("@3 +[rk_D]",)

    def test_unannounced_splice_fails_the_run(self, engine, scheduler):
        query = _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])

        engine.on_incremental_change("q1", 0, 3, [])

        assert query.observed_keys == []
        (_, error), = scheduler.failures
        assert isinstance(error, MismatchError)
        assert error.expected == ()
        assert error.observed == ("@0 -[rk_A,rk_B,rk_C]",)
        assert not scheduler.passed


class TestKill:

    def test_kill_unsubscribes(self, engine):
        query = _issue(engine)
        unsubscribed = []

        engine.kill("q1", unsubscribed.append)

        assert query.state is QueryState.KILLED
        assert unsubscribed == [query.handle]

    def test_completion_after_kill(self, engine):
        _issue(engine)
        engine.kill("q1", lambda handle: None)

        with pytest.raises(ProtocolViolation):
            engine.on_completion("q1", ["l_A", "l_B", "l_C"])

    def test_splice_after_kill_even_before_completion(self, engine):
        _issue(engine)
        engine.kill("q1", lambda handle: None)

        with pytest.raises(ProtocolViolation):
            engine.on_incremental_change("q1", 0, 0, ["l_D"])

    def test_items_modified_after_kill(self, engine, test_log):
        _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        engine.kill("q1", lambda handle: None)

        with pytest.raises(ProtocolViolation):
            engine.on_items_modified("q1", ["l_A"])
        assert test_log.get_entries(AuditEventType.ERROR)[-1].payload[0] == "PROTOCOL_VIOLATION"

    def test_killed_query_keeps_completed_flag(self, engine):
        query = _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        engine.kill("q1", lambda handle: None)

        assert query.completed is True
        assert query.state is QueryState.KILLED

    def test_late_event_fails_run_even_if_swallowed(self, engine, scheduler):
        _issue(engine)
        engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        engine.kill("q1", lambda handle: None)

        try:
            engine.on_completion("q1", ["l_A", "l_B", "l_C"])
        except ProtocolViolation:
            pass

        (actor, error), = scheduler.failures
        assert actor == "moda_a"
        assert isinstance(error, ProtocolViolation)
        assert not scheduler.passed

    def test_kill_twice_or_unknown(self, engine):
        _issue(engine)
        engine.kill("q1", lambda handle: None)

        with pytest.raises(NotFound):
            engine.kill("q1", lambda handle: None)
        with pytest.raises(NotFound):
            engine.kill("other", lambda handle: None)
