"""
Comparator Registry
===================

Total orders over shadow entities, keyed by typed sort criteria.

Typed enum members always have a sort key. The string parsers are the
only path that can fail, and exist for unchecked external input such as
a query dict coming from a test script.

Equal keys keep shadow-model insertion order (sorted() is stable), so
expectations are reproducible.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Tuple, Union
import unicodedata

from ..contracts.base import UnknownCriterion
from ..contracts.events import ContactInfo, ConversationInfo


class PeepSortCriterion(Enum):
    ALPHABET = "alphabet"
    ANY = "any"
    RECIP = "recip"
    WRITE = "write"


class ConversationSortCriterion(Enum):
    ANY = "any"
    CREATED = "created"


SortCriterion = Union[PeepSortCriterion, ConversationSortCriterion]


def collation_key(name: str) -> Tuple[str, str]:
    """
    Locale-aware alphabetical key.

    Compatibility-decomposed and casefolded first so "émile" sorts with
    "Emile"; the original spelling breaks remaining ties.
    """
    folded = unicodedata.normalize("NFKD", name).casefold()
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return (base, name)


_PEEP_SORT_KEYS: Dict[PeepSortCriterion, Callable[[ContactInfo], Any]] = {
    PeepSortCriterion.ALPHABET: lambda info: collation_key(info.name),
    PeepSortCriterion.ANY: lambda info: info.any,
    PeepSortCriterion.RECIP: lambda info: info.recip,
    PeepSortCriterion.WRITE: lambda info: info.write,
}

_CONVERSATION_SORT_KEYS: Dict[ConversationSortCriterion, Callable[[ConversationInfo], Any]] = {
    ConversationSortCriterion.ANY: lambda info: info.any,
    ConversationSortCriterion.CREATED: lambda info: info.created,
}


def sort_key_for(criterion: SortCriterion) -> Callable[[Any], Any]:
    """Sort key function for a typed criterion."""
    if isinstance(criterion, PeepSortCriterion):
        return _PEEP_SORT_KEYS[criterion]
    if isinstance(criterion, ConversationSortCriterion):
        return _CONVERSATION_SORT_KEYS[criterion]
    raise UnknownCriterion(
        f"Not a sort criterion: {criterion!r}",
        criterion=repr(criterion)
    )


def expected_order(infos: Iterable[Any], criterion: SortCriterion) -> Tuple[str, ...]:
    """Canonical keys of `infos` sorted ascending by `criterion`."""
    ordered = sorted(infos, key=sort_key_for(criterion))
    return tuple(info.canonical_key for info in ordered)


def parse_peep_criterion(name: Union[str, PeepSortCriterion]) -> PeepSortCriterion:
    if isinstance(name, PeepSortCriterion):
        return name
    try:
        return PeepSortCriterion(name)
    except ValueError:
        raise UnknownCriterion(
            f"Unknown peep sort criterion: {name!r}",
            criterion=name,
            allowed=",".join(c.value for c in PeepSortCriterion)
        ) from None


def parse_conversation_criterion(
    name: Union[str, ConversationSortCriterion]
) -> ConversationSortCriterion:
    if isinstance(name, ConversationSortCriterion):
        return name
    try:
        return ConversationSortCriterion(name)
    except ValueError:
        raise UnknownCriterion(
            f"Unknown conversation sort criterion: {name!r}",
            criterion=name,
            allowed=",".join(c.value for c in ConversationSortCriterion)
        ) from None
