"""wacl - Web Access Control decision engine.

Decides whether an agent may Read, Write, Append to or Control a resource,
based on the permissions in the resource's policy document and those
inherited from its containers.

Usage:
    from wacl import AccessMode, PolicyClient
    from wacl.transport import HttpGroupFetcher, HttpPolicyStore

    client = PolicyClient(HttpPolicyStore())
    ps = await client.get_permissions(resource_url)
    allowed = await ps.check_access(
        resource_url, agent_id, AccessMode.READ, group_loader=HttpGroupFetcher()
    )
"""

from wacl.acl import (
    ALL_MODES,
    EVERYONE,
    AccessMode,
    AccessType,
    AclError,
    GroupListing,
    Permission,
    PermissionSet,
    Principal,
)
from wacl.client import PolicyClient
from wacl.codec import PolicyCodec
from wacl.config import AclSettings, get_settings

__all__ = [
    "ALL_MODES",
    "EVERYONE",
    "AccessMode",
    "AccessType",
    "AclError",
    "GroupListing",
    "Permission",
    "PermissionSet",
    "Principal",
    "PolicyClient",
    "PolicyCodec",
    "AclSettings",
    "get_settings",
]
