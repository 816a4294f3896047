"""Lookup index for permissions.

Permissions are indexed first by principal id, then by access type, and
lastly by resource url:

    {
        "https://alice.example.com/#me": {
            AccessType.DIRECT: {"https://alice.example.com/file1": perm1},
            AccessType.INHERITED: {"https://alice.example.com/": perm2},
        }
    }

Only PermissionSet mutates an index, always together with its primary
collection.
"""

from wacl.acl.modes import AccessType
from wacl.acl.permission import Permission


class PermissionIndex:
    """principal id -> access type -> resource url -> Permission."""

    def __init__(self):
        self._entries: dict[str, dict[AccessType, dict[str, Permission]]] = {}

    def insert(self, permission: Permission) -> None:
        principal_id, resource_url, access_type = permission.identity_key()
        by_type = self._entries.setdefault(principal_id, {})
        by_type.setdefault(access_type, {})[resource_url] = permission

    def remove(self, permission: Permission) -> None:
        principal_id, resource_url, access_type = permission.identity_key()
        by_type = self._entries.get(principal_id)
        if not by_type:
            return
        by_resource = by_type.get(access_type)
        if by_resource is None:
            return
        by_resource.pop(resource_url, None)
        # Drop empty branches so principal_ids() reflects live grants only
        if not by_resource:
            del by_type[access_type]
        if not by_type:
            del self._entries[principal_id]

    def lookup(
        self,
        principal_id: str,
        access_type: AccessType,
        resource_url: str,
    ) -> Permission | None:
        """Exact lookup, no inheritance."""
        by_type = self._entries.get(principal_id, {})
        return by_type.get(access_type, {}).get(resource_url)

    def find(self, principal_id: str, resource_url: str) -> Permission | None:
        """Find the permission applicable to a resource for a principal.

        A direct permission on the exact resource wins. Otherwise the
        inherited permission of the most specific container (longest url
        that prefixes the resource) applies; equal lengths are broken by
        reverse lexicographic order.
        """
        by_type = self._entries.get(principal_id)
        if not by_type:
            return None

        direct = by_type.get(AccessType.DIRECT, {}).get(resource_url)
        if direct is not None:
            return direct

        inherited = by_type.get(AccessType.INHERITED, {})
        containers = [url for url in inherited if resource_url.startswith(url)]
        if not containers:
            return None
        best = max(containers, key=lambda url: (len(url), url))
        return inherited[best]

    def principal_ids(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, principal_id: object) -> bool:
        return principal_id in self._entries

    def __len__(self) -> int:
        return sum(
            len(by_resource)
            for by_type in self._entries.values()
            for by_resource in by_type.values()
        )

    def clear(self) -> None:
        self._entries.clear()
