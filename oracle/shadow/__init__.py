"""
Shadow Models
=============

Independently maintained expectation of state, built only from the
actions a test reports. Never populated by reading the system under test.

Modules:
- contacts: per-peer activity counters
- conversations: joined conversations and their latest activity
"""

from .contacts import ShadowContactModel
from .conversations import ShadowConversationModel

__all__ = [
    'ShadowContactModel',
    'ShadowConversationModel',
]
