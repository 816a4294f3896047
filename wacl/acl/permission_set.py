"""Permission sets.

Models the set of permissions in one policy document (e.g. ``file1.acl``):

- Each Permission has one principal and one resource url, and may grant
  several access modes. Permissions with the same identity key are merged.
- Permissions added to a container's set are inherited by default.
- Granting Control on a resource implies full access to its policy
  document, which is modelled with virtual (never serialized) permissions.

Usage:
    ps = PermissionSet(resource_url, acl_url)
    ps.add_permission(alice, [AccessMode.READ, AccessMode.WRITE])
    ps.add_group_permission(group_id, AccessMode.READ)

    if await ps.check_access(resource_url, bob, AccessMode.READ, group_loader=fetcher):
        ...
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

from wacl.acl.errors import InvalidArgument, MissingDependency, MissingResource
from wacl.acl.group_listing import GroupFetcher, GroupListing
from wacl.acl.index import PermissionIndex
from wacl.acl.modes import ALL_MODES, EVERYONE, AccessMode, AccessType, ResourceType, parse_modes
from wacl.acl.permission import MAILTO_PREFIX, IdentityKey, Permission, identity_key_for

if TYPE_CHECKING:
    from wacl.codec.json_codec import PolicyCodec
    from wacl.transport.base import PolicyStore

logger = logging.getLogger(__name__)

DEFAULT_ACL_SUFFIX = ".acl"
DEFAULT_CONTENT_TYPE = "application/json"


def default_is_policy_url(url: str) -> bool:
    """Does this url name a policy document?"""
    return url.endswith(DEFAULT_ACL_SUFFIX)


def default_policy_url_for(resource_url: str) -> str:
    """Policy document url for a resource. Policy documents are their own policy."""
    if default_is_policy_url(resource_url):
        return resource_url
    return resource_url + DEFAULT_ACL_SUFFIX


class PermissionSet:
    """The indexed permissions of one resource's policy document."""

    RESOURCE = ResourceType.RESOURCE
    CONTAINER = ResourceType.CONTAINER

    def __init__(
        self,
        resource_url: str | None = None,
        acl_url: str | None = None,
        is_container: bool = False,
        *,
        strict_origin: bool = False,
        origin: str | None = None,
        host: str | None = None,
        policy_url_for: Callable[[str], str] | None = None,
        codec: "PolicyCodec | None" = None,
        store: "PolicyStore | None" = None,
    ):
        """Initialize a permission set.

        Args:
            resource_url: Resource these permissions apply to
            acl_url: Url the policy document is saved at
            is_container: Whether the resource is a container (new
                permissions are then inherited)
            strict_origin: Enforce the ``Origin`` of requests
            origin: Request origin, used when strict_origin is set
            host: Request host; an origin equal to it is trusted
            policy_url_for: Maps a resource url to its policy document url
            codec: Used by serialize() and save()
            store: Used by save() and clear()
        """
        self.resource_url = resource_url
        self.acl_url = acl_url
        self.resource_type = ResourceType.CONTAINER if is_container else ResourceType.RESOURCE
        self.strict_origin = strict_origin
        self.origin = origin
        self.host = host
        self.policy_url_for = policy_url_for or default_policy_url_for
        self.codec = codec
        self.store = store

        self._permissions: dict[IdentityKey, Permission] = {}
        self._agents = PermissionIndex()
        # Group permissions, public ones under EVERYONE
        self._groups = PermissionIndex()
        self._group_listings: dict[str, GroupListing] = {}

    # Mutation

    def is_permission_inherited(self) -> bool:
        """Are new permissions inherited by default? True for containers."""
        return self.resource_type == ResourceType.CONTAINER

    @property
    def default_access_type(self) -> AccessType:
        return AccessType.INHERITED if self.is_permission_inherited() else AccessType.DIRECT

    def add_permission(
        self,
        principal_id: str,
        modes,
        origins: Iterable[str] | str | None = None,
    ) -> "PermissionSet":
        """Grant access modes to an agent on this set's resource. Chainable.

        Raises:
            InvalidArgument: If principal_id is empty or a mailto: alias, or
                modes is empty
            MissingResource: If this set has no resource url
        """
        if not principal_id:
            raise InvalidArgument("add_permission() requires a principal id")
        if principal_id.startswith(MAILTO_PREFIX):
            raise InvalidArgument(f"Mail aliases cannot be granted permissions: {principal_id}")
        modes = parse_modes(modes)
        if not modes:
            raise InvalidArgument("add_permission() requires at least one access mode")
        if not self.resource_url:
            raise MissingResource()

        permission = Permission(self.resource_url, self.is_permission_inherited())
        permission.set_agent(principal_id)
        permission.add_mode(modes)
        permission.add_origin(origins)
        return self.add_single_permission(permission)

    def add_group_permission(self, group_id: str, modes) -> "PermissionSet":
        """Grant access modes to a group on this set's resource. Chainable.

        Raises:
            InvalidArgument: If group_id or modes is empty
            MissingResource: If this set has no resource url
        """
        if not group_id:
            raise InvalidArgument("add_group_permission() requires a group id")
        modes = parse_modes(modes)
        if not modes:
            raise InvalidArgument("add_group_permission() requires at least one access mode")
        if not self.resource_url:
            raise MissingResource()

        permission = Permission(self.resource_url, self.is_permission_inherited())
        permission.set_group(group_id)
        permission.add_mode(modes)
        return self.add_single_permission(permission)

    def add_public_permission(self, modes) -> "PermissionSet":
        return self.add_group_permission(EVERYONE, modes)

    def add_permission_for(
        self,
        resource_url: str,
        inherit: bool,
        principal: "str | GroupListing",
        modes=None,
        origins: Iterable[str] | None = None,
        mail_aliases: Iterable[str] | None = None,
    ) -> "PermissionSet":
        """Add a permission for an explicit resource and access type.

        Used when loading a policy document. A GroupListing principal adds a
        group permission, a plain id an agent (or public) one.
        """
        permission = Permission(resource_url, inherit)
        if isinstance(principal, GroupListing):
            permission.set_group(principal.id)
        else:
            permission.set_agent(principal)
        permission.add_mode(modes)
        permission.add_origin(origins)
        if permission.is_agent():
            for alias in mail_aliases or ():
                permission.add_mail_alias(alias)
        return self.add_single_permission(permission)

    def add_single_permission(self, permission: Permission) -> "PermissionSet":
        """Add a Permission, merging with any existing one of the same key.

        Low-level. Keeps the indexes in step with the collection and
        synthesizes the policy document grant implied by Control. An
        explicit permission replaces a virtual one of the same key.
        """
        key = permission.identity_key()
        existing = self._permissions.get(key)
        if existing is None or (existing.virtual and not permission.virtual):
            stored = permission
            self._permissions[key] = stored
        else:
            stored = existing
            stored.merge_with(permission)
            stored.add_origin(permission.allowed_origins)
            for alias in permission.mail_aliases:
                stored.add_mail_alias(alias)

        self._index_for(stored).insert(stored)

        if not permission.virtual and stored.allows_control():
            self._add_control_permissions_for(stored)
        return self

    def _add_control_permissions_for(self, permission: Permission) -> None:
        policy_url = self.policy_url_for(permission.resource_url)
        key = identity_key_for(permission.principal_id, policy_url, permission.access_type)
        existing = self._permissions.get(key)
        if existing is not None and not existing.virtual:
            # Explicit grants on the policy document are left as written
            return

        implied = permission.clone()
        implied.resource_url = policy_url
        implied.virtual = True
        implied.add_mode(ALL_MODES)
        logger.debug("Implied control permission %r", implied)
        self.add_single_permission(implied)

    def _remove_control_permissions_for(self, permission: Permission) -> None:
        policy_url = self.policy_url_for(permission.resource_url)
        key = identity_key_for(permission.principal_id, policy_url, permission.access_type)
        implied = self._permissions.get(key)
        if implied is None or not implied.virtual:
            return
        logger.debug("Retracting implied control permission %r", implied)
        del self._permissions[key]
        self._index_for(implied).remove(implied)

    def remove_permission(self, principal_id: str, modes) -> "PermissionSet":
        """Remove access modes from a principal's permission on this resource.

        The permission is deleted once no modes remain. Losing Control also
        retracts the implied policy document grant. Chainable.
        """
        permission = self.permission_for(principal_id)
        if permission is None:
            return self
        permission.remove_mode(modes)
        if permission.is_empty():
            self.remove_single_permission(permission)
        elif not permission.virtual and not permission.allows_control():
            self._remove_control_permissions_for(permission)
        return self

    def remove_single_permission(self, permission: Permission) -> "PermissionSet":
        key = permission.identity_key()
        stored = self._permissions.pop(key, None)
        if stored is not None:
            self._index_for(stored).remove(stored)
            if not stored.virtual:
                self._remove_control_permissions_for(stored)
        return self

    def _index_for(self, permission: Permission) -> PermissionIndex:
        return self._groups if permission.is_group() else self._agents

    # Queries

    def permission_for(
        self,
        principal_id: str,
        resource_url: str | None = None,
        access_type: AccessType | None = None,
    ) -> Permission | None:
        """Return the permission stored for a principal, or None.

        Defaults to this set's resource url and default access type.
        """
        if not principal_id:
            return None
        resource_url = resource_url or self.resource_url
        if not resource_url:
            return None
        key = identity_key_for(principal_id, resource_url, access_type or self.default_access_type)
        return self._permissions.get(key)

    def find_permission_by_agent(self, agent_id: str, resource_url: str) -> Permission | None:
        """Applicable agent permission for a resource, inheritance included."""
        return self._agents.find(agent_id, resource_url)

    def find_permission_by_group(self, group_id: str, resource_url: str) -> Permission | None:
        return self._groups.find(group_id, resource_url)

    def find_public_permission(self, resource_url: str) -> Permission | None:
        return self._groups.find(EVERYONE, resource_url)

    def all_permissions(self) -> list[Permission]:
        """Explicit permissions. Virtual ones are excluded."""
        return [p for p in self._permissions.values() if not p.virtual]

    def virtual_permissions(self) -> list[Permission]:
        return [p for p in self._permissions.values() if p.virtual]

    def __iter__(self) -> Iterator[Permission]:
        return iter(self.all_permissions())

    @property
    def count(self) -> int:
        return len(self.all_permissions())

    def __len__(self) -> int:
        return self.count

    def is_empty(self) -> bool:
        return self.count == 0

    def group_ids(self, exclude_public: bool = True) -> list[str]:
        """Ids of groups granted permissions in this set."""
        ids = self._groups.principal_ids()
        if exclude_public:
            ids = [group_id for group_id in ids if group_id != EVERYONE]
        return ids

    def has_groups(self) -> bool:
        """Are there any (non-public) group permissions?"""
        return len(self.group_ids()) > 0

    @property
    def group_listings(self) -> dict[str, GroupListing]:
        return dict(self._group_listings)

    def add_group_listing(self, listing: GroupListing) -> "PermissionSet":
        """Cache an already resolved group listing."""
        self._group_listings[listing.id] = listing
        return self

    def groups_for_member(self, agent_id: str) -> list[str]:
        """Ids of loaded groups the agent belongs to."""
        return [
            group_id
            for group_id, listing in self._group_listings.items()
            if listing.has_member(agent_id)
        ]

    def __eq__(self, other: object) -> bool:
        """Same resource, policy url, resource type and explicit permissions."""
        if not isinstance(other, PermissionSet):
            return NotImplemented
        if (
            self.resource_url != other.resource_url
            or self.acl_url != other.acl_url
            or self.resource_type != other.resource_type
        ):
            return False
        mine = {p.identity_key(): p for p in self.all_permissions()}
        theirs = {p.identity_key(): p for p in other.all_permissions()}
        return mine == theirs

    __hash__ = None

    def __repr__(self) -> str:
        return f"<PermissionSet {self.resource_url} ({self.resource_type.value}) count={self.count}>"

    # Resolution

    def check_origin(
        self,
        permission: Permission,
        strict_origin: bool | None = None,
        origin: str | None = None,
        host: str | None = None,
    ) -> bool:
        """Does the permission allow the request's ``Origin``?"""
        strict_origin = self.strict_origin if strict_origin is None else strict_origin
        origin = origin or self.origin
        host = host or self.host
        if not strict_origin or not origin or origin == host:
            return True
        logger.debug("Origin %s differs from host %s, checking allowed origins", origin, host)
        return permission.allows_origin(origin)

    def allows_public(self, mode: AccessMode | str, resource_url: str | None = None) -> bool:
        """Do public permissions grant the mode? Origins are not checked."""
        permission = self.find_public_permission(resource_url or self.resource_url)
        return permission is not None and permission.allows_mode(mode)

    def check_access_for_agent(
        self,
        resource_url: str,
        agent_id: str,
        mode: AccessMode | str,
        **origin_context: Any,
    ) -> bool:
        permission = self._agents.find(agent_id, resource_url)
        return self._grants(permission, mode, origin_context)

    def check_access_sync(
        self,
        resource_url: str,
        agent_id: str,
        mode: AccessMode | str,
        **origin_context: Any,
    ) -> bool:
        """Public and individual checks only. Never suspends."""
        if self.allows_public(mode, resource_url):
            logger.debug("Public access allowed for %s", resource_url)
            return True
        if agent_id and self.check_access_for_agent(resource_url, agent_id, mode, **origin_context):
            logger.debug("Individual access granted to %s for %s", agent_id, resource_url)
            return True
        return False

    def check_group_access(
        self,
        resource_url: str,
        agent_id: str,
        mode: AccessMode | str,
        **origin_context: Any,
    ) -> bool:
        """Check the loaded groups the agent is a member of."""
        for group_id in self.groups_for_member(agent_id):
            logger.debug("Looking for access rights for group %s", group_id)
            permission = self._groups.find(group_id, resource_url)
            if self._grants(permission, mode, origin_context):
                logger.debug("Group %s grants access for %s", group_id, resource_url)
                return True
        return False

    def _grants(
        self,
        permission: Permission | None,
        mode: AccessMode | str,
        origin_context: dict[str, Any],
    ) -> bool:
        if permission is None or not permission.allows_mode(mode):
            return False
        return self.check_origin(permission, **origin_context)

    async def load_groups(
        self,
        group_loader: GroupFetcher | None,
        **options: Any,
    ) -> "PermissionSet":
        """Load the listings of every group not cached yet.

        Loads run concurrently and each fills its own cache slot. Groups
        that fail to load stay uncached and grant nothing.

        Raises:
            MissingDependency: If listings must be loaded and no loader is given
        """
        pending = [gid for gid in self.group_ids() if gid not in self._group_listings]
        if not pending:
            return self
        if group_loader is None:
            raise MissingDependency("Cannot load groups, no group loader supplied")

        logger.debug("Loading %d group listing(s)", len(pending))
        listings = await asyncio.gather(
            *(GroupListing.load_from(group_id, group_loader, **options) for group_id in pending)
        )
        for group_id, listing in zip(pending, listings):
            if listing is not None:
                self._group_listings[group_id] = listing
        return self

    async def check_access(
        self,
        resource_url: str,
        agent_id: str | None,
        mode: AccessMode | str,
        *,
        group_loader: GroupFetcher | None = None,
        strict_origin: bool | None = None,
        origin: str | None = None,
        host: str | None = None,
        **loader_options: Any,
    ) -> bool:
        """Does the agent have the access mode on the resource?

        Checks, in order: public permissions, the agent's own permission,
        then the permissions of groups the agent belongs to (loading group
        listings through group_loader when needed). A missing permission is
        a deny, not an error.

        Args:
            resource_url: Resource being accessed
            agent_id: Requesting agent, None for anonymous requests
            mode: Requested access mode
            group_loader: Async fetcher returning a GroupListing or None
            strict_origin: Overrides the set's origin enforcement
            origin: Overrides the set's request origin
            host: Overrides the set's request host
            **loader_options: Passed through to group_loader

        Returns:
            True if access is granted
        """
        mode = AccessMode.parse(mode)
        origin_context = {"strict_origin": strict_origin, "origin": origin, "host": host}
        logger.debug("Checking %s access for %s on %s", mode.short_name, agent_id, resource_url)

        if self.check_access_sync(resource_url, agent_id, mode, **origin_context):
            return True

        if agent_id and self.has_groups():
            await self.load_groups(group_loader, **loader_options)
            return self.check_group_access(resource_url, agent_id, mode, **origin_context)

        logger.debug("Access denied for %s to %s %s", agent_id, mode.short_name, resource_url)
        return False

    # Persistence

    def serialize(self, content_type: str | None = None, codec: "PolicyCodec | None" = None) -> str:
        """Serialize explicit, valid permissions into a policy document.

        Raises:
            MissingDependency: If no codec is configured
        """
        codec = codec or self.codec
        if codec is None:
            raise MissingDependency("Cannot serialize - no codec")
        return codec.serialize(self, content_type or DEFAULT_CONTENT_TYPE)

    async def save(
        self,
        acl_url: str | None = None,
        content_type: str | None = None,
        store: "PolicyStore | None" = None,
    ) -> Any:
        """Write this set's policy document to the store.

        Raises:
            MissingDependency: If the target url, store or codec is missing
        """
        acl_url = acl_url or self.acl_url
        store = store or self.store
        content_type = content_type or DEFAULT_CONTENT_TYPE
        if not acl_url:
            raise MissingDependency("Cannot save - unknown target url")
        if store is None:
            raise MissingDependency("Cannot save - no policy store")
        document = self.serialize(content_type)
        return await store.put(acl_url, document, content_type)

    async def clear(self, store: "PolicyStore | None" = None) -> Any:
        """Delete this set's policy document from the store.

        Raises:
            MissingDependency: If the target url or store is missing
        """
        store = store or self.store
        if store is None:
            raise MissingDependency("Cannot clear - no policy store")
        if not self.acl_url:
            raise MissingDependency("Cannot clear - unknown target url")
        return await store.delete(self.acl_url)
