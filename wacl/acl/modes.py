"""Access control vocabulary.

Access modes, access types and the well-known "everyone" principal, as
defined by the W3C Web Access Control vocabulary.
"""

from enum import Enum

from wacl.acl.errors import InvalidArgument

ACL_NAMESPACE = "http://www.w3.org/ns/auth/acl#"
FOAF_NAMESPACE = "http://xmlns.com/foaf/0.1/"
VCARD_NAMESPACE = "http://www.w3.org/2006/vcard/ns#"

# foaf:Agent, i.e. everyone
EVERYONE = FOAF_NAMESPACE + "Agent"


class AccessMode(str, Enum):
    """Capability tokens a permission can grant.

    Write implies Append. Control is independent of the other modes.
    """

    READ = ACL_NAMESPACE + "Read"
    WRITE = ACL_NAMESPACE + "Write"
    APPEND = ACL_NAMESPACE + "Append"
    CONTROL = ACL_NAMESPACE + "Control"

    @property
    def short_name(self) -> str:
        return self.value[len(ACL_NAMESPACE):]

    @classmethod
    def parse(cls, value: "AccessMode | str") -> "AccessMode":
        """Normalize an enum member, vocabulary IRI or short name ('read')."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value:
            raise InvalidArgument(f"Invalid access mode: {value!r}")
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            raise InvalidArgument(f"Unknown access mode: {value}") from None

    def implied_by(self, granted: "set[AccessMode] | frozenset[AccessMode]") -> bool:
        """Is this mode satisfied by the granted mode set?"""
        if self in granted:
            return True
        return self is AccessMode.APPEND and AccessMode.WRITE in granted


ALL_MODES = (
    AccessMode.READ,
    AccessMode.WRITE,
    AccessMode.APPEND,
    AccessMode.CONTROL,
)


class AccessType(str, Enum):
    """Whether a permission targets one resource or a container's contents."""

    DIRECT = "accessTo"
    INHERITED = "default"


class ResourceType(str, Enum):
    """Kind of resource a permission set belongs to."""

    RESOURCE = "resource"
    CONTAINER = "container"


def parse_modes(modes) -> list[AccessMode]:
    """Normalize one mode or an iterable of modes into a list."""
    if modes is None:
        return []
    if isinstance(modes, (str, AccessMode)):
        return [AccessMode.parse(modes)]
    return [AccessMode.parse(mode) for mode in modes]
