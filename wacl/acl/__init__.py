"""Web Access Control decision engine.

Permission data model, permission indexing and access resolution, including
group membership.

Usage:
    from wacl.acl import AccessMode, PermissionSet

    ps = PermissionSet("https://example.com/docs/file1", "https://example.com/docs/file1.acl")
    ps.add_permission("https://alice.example.com/#me", AccessMode.READ)

    allowed = await ps.check_access(
        "https://example.com/docs/file1",
        "https://alice.example.com/#me",
        AccessMode.READ,
    )
"""

from wacl.acl.errors import (
    AclError,
    IdentityMismatch,
    IncompleteIdentity,
    InvalidArgument,
    MissingDependency,
    MissingResource,
    PolicyDocumentError,
    PrincipalConflict,
)
from wacl.acl.group_listing import GroupFetcher, GroupListing
from wacl.acl.index import PermissionIndex
from wacl.acl.modes import ALL_MODES, EVERYONE, AccessMode, AccessType, ResourceType
from wacl.acl.permission import Permission, identity_key_for
from wacl.acl.permission_set import (
    DEFAULT_ACL_SUFFIX,
    PermissionSet,
    default_is_policy_url,
    default_policy_url_for,
)
from wacl.acl.principal import Principal, PrincipalKind

__all__ = [
    "AccessMode",
    "AccessType",
    "ResourceType",
    "ALL_MODES",
    "EVERYONE",
    "Principal",
    "PrincipalKind",
    "Permission",
    "identity_key_for",
    "GroupListing",
    "GroupFetcher",
    "PermissionIndex",
    "PermissionSet",
    "DEFAULT_ACL_SUFFIX",
    "default_is_policy_url",
    "default_policy_url_for",
    "AclError",
    "PrincipalConflict",
    "IdentityMismatch",
    "IncompleteIdentity",
    "MissingResource",
    "InvalidArgument",
    "MissingDependency",
    "PolicyDocumentError",
]
