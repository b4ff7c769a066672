"""Policy storage - backing sources and the caching store.

Structure:
    sources.py        - PolicySource protocol, file and in-memory sources
    policy_store.py   - PolicyStore (load / get_cached / invalidate)
"""

from grc_policy.store.policy_store import PolicyStore
from grc_policy.store.sources import (
    FilePolicySource,
    InMemoryPolicySource,
    PolicySource,
    RawPolicy,
)

__all__ = [
    "FilePolicySource",
    "InMemoryPolicySource",
    "PolicySource",
    "PolicyStore",
    "RawPolicy",
]
