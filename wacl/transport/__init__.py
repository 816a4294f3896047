"""Policy and group listing transport.

Usage:
    from wacl.transport import HttpGroupFetcher, HttpPolicyStore

    fetcher = HttpGroupFetcher()
    allowed = await ps.check_access(url, agent_id, AccessMode.READ, group_loader=fetcher)
"""

from wacl.transport.base import PolicyStore
from wacl.transport.http import HttpGroupFetcher, HttpPolicyStore, build_client
from wacl.transport.memory import MemoryPolicyStore

__all__ = [
    "PolicyStore",
    "HttpGroupFetcher",
    "HttpPolicyStore",
    "MemoryPolicyStore",
    "build_client",
]
