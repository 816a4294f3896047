"""A single permission grant.

One principal, one resource and one access type per Permission. A policy
document that names several agents or resources in one authorization is
split into several Permissions by the codec.
"""

import copy
from typing import Iterable

from wacl.acl.errors import IdentityMismatch, IncompleteIdentity, PrincipalConflict
from wacl.acl.group_listing import GroupListing
from wacl.acl.modes import EVERYONE, AccessMode, AccessType, parse_modes
from wacl.acl.principal import Principal

MAILTO_PREFIX = "mailto:"

IdentityKey = tuple[str, str, AccessType]


def identity_key_for(
    principal_id: str,
    resource_url: str,
    access_type: AccessType = AccessType.DIRECT,
) -> IdentityKey:
    """Build the key a permission is stored under in a PermissionSet."""
    return (principal_id, resource_url, AccessType(access_type))


class Permission:
    """A grant of access modes to one principal on one resource.

    Low-level. Most callers should use ``PermissionSet.add_permission()``.

    Attributes:
        resource_url: Resource (or container) this grant targets
        access_type: DIRECT for the resource itself, INHERITED for a
            container's contents
        principal: Agent, group or public principal, None until set
        access_modes: Granted access modes
        allowed_origins: Request origins allowed to use this grant
        mail_aliases: Contact aliases of an agent (informational only)
        virtual: Synthesized by the engine, never serialized
    """

    def __init__(
        self,
        resource_url: str | None = None,
        inherited: bool = False,
        principal: Principal | None = None,
        modes: Iterable[AccessMode | str] | AccessMode | str | None = None,
        origins: Iterable[str] | str | None = None,
    ):
        self.resource_url = resource_url
        self.access_type = AccessType.INHERITED if inherited else AccessType.DIRECT
        self.principal = principal
        self.access_modes: set[AccessMode] = set()
        self.allowed_origins: set[str] = set()
        self.mail_aliases: list[str] = []
        self.virtual = False

        self.add_mode(modes)
        self.add_origin(origins)

    # Principal

    @property
    def principal_id(self) -> str | None:
        return self.principal.id if self.principal else None

    @property
    def agent(self) -> str | None:
        if self.principal and self.principal.is_agent:
            return self.principal.id
        return None

    @property
    def group(self) -> str | None:
        """Group id, EVERYONE for public permissions."""
        if self.principal and not self.principal.is_agent:
            return self.principal.id
        return None

    def set_agent(self, agent: "str | GroupListing") -> "Permission":
        """Set the agent this permission is granted to.

        ``EVERYONE`` makes this a public permission and a ``mailto:`` IRI is
        recorded as a mail alias rather than a principal.

        Raises:
            PrincipalConflict: If a group principal is already set
        """
        if isinstance(agent, GroupListing):
            return self.set_group(agent.id)
        if agent == EVERYONE:
            return self.set_public()
        if agent.startswith(MAILTO_PREFIX):
            return self.add_mail_alias(agent)
        if self.principal and not self.principal.is_agent:
            raise PrincipalConflict("Cannot set agent, permission already has a group set")
        self.principal = Principal.agent(agent)
        return self

    def set_group(self, group: "str | GroupListing") -> "Permission":
        """Set the group this permission is granted to.

        Raises:
            PrincipalConflict: If an agent principal is already set
        """
        if isinstance(group, GroupListing):
            group = group.id
        if self.principal and self.principal.is_agent:
            raise PrincipalConflict("Cannot set group, permission already has an agent set")
        self.principal = Principal.group(group)
        return self

    def set_public(self) -> "Permission":
        """Grant this permission to everyone."""
        return self.set_group(EVERYONE)

    def is_agent(self) -> bool:
        return bool(self.principal and self.principal.is_agent)

    def is_group(self) -> bool:
        """True for group permissions, public ones included."""
        return bool(self.principal and not self.principal.is_agent)

    def is_public(self) -> bool:
        return bool(self.principal and self.principal.is_public)

    def is_inherited(self) -> bool:
        return self.access_type == AccessType.INHERITED

    @property
    def inherited(self) -> bool:
        return self.is_inherited()

    # Modes and origins

    def add_mode(self, modes) -> "Permission":
        """Add one or more access modes. Chainable."""
        self.access_modes.update(parse_modes(modes))
        return self

    def remove_mode(self, modes) -> "Permission":
        """Remove one or more access modes. Chainable.

        Only the named modes are removed: removing Append leaves Write (and
        therefore implied Append) in place.
        """
        for mode in parse_modes(modes):
            self.access_modes.discard(mode)
        return self

    def all_modes(self) -> list[AccessMode]:
        return sorted(self.access_modes, key=lambda m: m.value)

    def add_origin(self, origins: Iterable[str] | str | None) -> "Permission":
        self.allowed_origins.update(_as_list(origins))
        return self

    def remove_origin(self, origins: Iterable[str] | str | None) -> "Permission":
        for origin in _as_list(origins):
            self.allowed_origins.discard(origin)
        return self

    def all_origins(self) -> list[str]:
        return sorted(self.allowed_origins)

    def add_mail_alias(self, alias: str) -> "Permission":
        """Record a contact alias, stripping any ``mailto:`` prefix."""
        if alias.startswith(MAILTO_PREFIX):
            alias = alias[len(MAILTO_PREFIX):]
        if alias and alias not in self.mail_aliases:
            self.mail_aliases.append(alias)
        return self

    def allows_mode(self, mode: AccessMode | str) -> bool:
        return AccessMode.parse(mode).implied_by(self.access_modes)

    def allows_read(self) -> bool:
        return self.allows_mode(AccessMode.READ)

    def allows_write(self) -> bool:
        return self.allows_mode(AccessMode.WRITE)

    def allows_append(self) -> bool:
        return self.allows_mode(AccessMode.APPEND)

    def allows_control(self) -> bool:
        return self.allows_mode(AccessMode.CONTROL)

    def allows_origin(self, origin: str) -> bool:
        return origin in self.allowed_origins

    # State

    def is_empty(self) -> bool:
        return not self.access_modes

    def is_valid(self) -> bool:
        """Ready to be serialized: principal, resource url and a mode."""
        return bool(self.principal and self.resource_url and not self.is_empty())

    def identity_key(self) -> IdentityKey:
        """Return (principal id, resource url, access type).

        Raises:
            IncompleteIdentity: If the principal or resource url is missing
        """
        if not self.principal or not self.resource_url:
            raise IncompleteIdentity()
        return identity_key_for(self.principal.id, self.resource_url, self.access_type)

    def merge_with(self, other: "Permission") -> "Permission":
        """Union the other permission's access modes into this one.

        Raises:
            IdentityMismatch: If the identity keys differ
        """
        if self.identity_key() != other.identity_key():
            raise IdentityMismatch()
        self.access_modes.update(other.access_modes)
        return self

    def clone(self) -> "Permission":
        return copy.deepcopy(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return (
            self.principal == other.principal
            and self.resource_url == other.resource_url
            and self.access_modes == other.access_modes
            and self.access_type == other.access_type
            and self.mail_aliases == other.mail_aliases
            and self.allowed_origins == other.allowed_origins
        )

    __hash__ = None

    def __repr__(self) -> str:
        modes = ",".join(m.short_name for m in self.all_modes())
        flag = " virtual" if self.virtual else ""
        return (
            f"<Permission {self.principal} {self.access_type.value} "
            f"{self.resource_url} [{modes}]{flag}>"
        )


def _as_list(values: Iterable[str] | str | None) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    return list(values)
