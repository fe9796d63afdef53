"""
Oracle Configuration
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class OracleConfig:
    """
    Configuration for one moda test actor.

    Namespaces are baked into every issued query and never change
    for the lifetime of the actor.
    """
    peep_namespace: str = "peeps"
    conversation_namespace: str = "convs"

    def __post_init__(self):
        if not self.peep_namespace or not self.conversation_namespace:
            raise ValueError("namespaces must be non-empty strings")
        if self.peep_namespace == self.conversation_namespace:
            raise ValueError("peep and conversation namespaces must differ")
