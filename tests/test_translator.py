"""
Identifier Translator Tests
"""

import pytest

from oracle.contracts.base import UnresolvedIdentifier
from oracle.query.translator import IdentifierTranslator

from tests.fixtures import FakeResolver, PEER_X, PEER_Y, PEEP_NS, CONV_NS


@pytest.fixture
def resolver():
    resolver = FakeResolver()
    resolver.index_peer(PEER_X)
    resolver.index_peer(PEER_Y)
    return resolver


class TestIdentifierTranslator:

    def test_resolves_known_names(self, resolver):
        translator = IdentifierTranslator(resolver)

        assert translator.to_canonical(PEEP_NS, "local_x") == "rk_X"
        assert translator.translate_all(PEEP_NS, ["local_y", "local_x"]) == ("rk_Y", "rk_X")

    def test_unindexed_name_is_hard_failure(self, resolver):
        translator = IdentifierTranslator(resolver)

        with pytest.raises(UnresolvedIdentifier) as exc_info:
            translator.to_canonical(PEEP_NS, "local_ghost")
        assert ("local_id", "local_ghost") in exc_info.value.context

    def test_namespaces_are_separate(self, resolver):
        translator = IdentifierTranslator(resolver)

        with pytest.raises(UnresolvedIdentifier):
            translator.to_canonical(CONV_NS, "local_x")
