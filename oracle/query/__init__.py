"""
Query & Verification
====================

RESPONSIBILITY: Predict live-query output from shadow snapshots and
verify production notifications against the prediction.

Modules:
- comparators: typed sort criteria and their orderings
- translator: local -> canonical identifier mapping
- live: per-query state machine and verification engine
"""

from .comparators import (
    PeepSortCriterion,
    ConversationSortCriterion,
    SortCriterion,
    collation_key,
    sort_key_for,
    expected_order,
    parse_peep_criterion,
    parse_conversation_criterion,
)
from .translator import IdentifierTranslator
from .live import QueryState, LiveQuery, LiveQueryEngine

__all__ = [
    'PeepSortCriterion',
    'ConversationSortCriterion',
    'SortCriterion',
    'collation_key',
    'sort_key_for',
    'expected_order',
    'parse_peep_criterion',
    'parse_conversation_criterion',
    'IdentifierTranslator',
    'QueryState',
    'LiveQuery',
    'LiveQueryEngine',
]
