"""
Identifier Translator
=====================

Maps the production system's transient local names to stable canonical
identifiers (root public keys, conversation ids) so they can be compared
against the shadow model.

An unresolved name is a hard failure: comparing with a placeholder would
produce false negatives that hide real bugs.
"""

from __future__ import annotations
from typing import Iterable, Tuple

from ..contracts.base import UnresolvedIdentifier
from ..contracts.production import NameResolver


class IdentifierTranslator:

    def __init__(self, resolver: NameResolver):
        self._resolver = resolver

    def to_canonical(self, namespace: str, local_id: str) -> str:
        full_name = self._resolver.map_local_name_to_full_name(namespace, local_id)
        if full_name is None:
            raise UnresolvedIdentifier(
                f"No canonical name for {local_id!r} in namespace {namespace!r}",
                namespace=namespace,
                local_id=local_id
            )
        return full_name

    def translate_all(self, namespace: str, local_ids: Iterable[str]) -> Tuple[str, ...]:
        return tuple(self.to_canonical(namespace, local_id) for local_id in local_ids)
