"""Policy client.

Loads, saves and clears the policy document of a resource through a
PolicyStore.

Usage:
    client = PolicyClient(HttpPolicyStore())

    ps = await client.get_permissions("https://example.com/docs/", is_container=True)
    ps.add_permission(alice, AccessMode.READ)
    await client.save(ps)

    await client.clear_permissions("https://example.com/docs/file1")
"""

import logging
from typing import Any, Callable

from wacl.acl.errors import MissingDependency
from wacl.acl.permission_set import PermissionSet
from wacl.codec.json_codec import PolicyCodec
from wacl.config import AclSettings, get_settings
from wacl.transport.base import PolicyStore

logger = logging.getLogger(__name__)


def suffix_policy_url_for(suffix: str) -> Callable[[str], str]:
    """Policy url mapping for a configured suffix."""

    def policy_url_for(resource_url: str) -> str:
        if resource_url.endswith(suffix):
            return resource_url
        return resource_url + suffix

    return policy_url_for


class PolicyClient:
    """Loads and persists PermissionSets."""

    def __init__(
        self,
        store: PolicyStore | None,
        codec: PolicyCodec | None = None,
        settings: AclSettings | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.codec = codec or PolicyCodec(self.settings.acl_suffix)

    def _require_store(self, action: str) -> PolicyStore:
        if self.store is None:
            raise MissingDependency(f"Cannot {action} - no policy store")
        return self.store

    async def get_permissions(
        self,
        resource_url: str,
        is_container: bool = False,
        **set_options: Any,
    ) -> PermissionSet:
        """Load the PermissionSet governing a resource.

        Returns an empty set when the resource has no policy document yet.
        """
        store = self._require_store("load permissions")
        acl_url = await store.policy_url_for(resource_url)
        options = {
            "strict_origin": self.settings.strict_origin,
            "host": self.settings.server_host,
            "policy_url_for": suffix_policy_url_for(self.settings.acl_suffix),
            "store": store,
            **set_options,
        }

        document = await store.get(acl_url)
        if document is None:
            logger.debug("No policy document at %s", acl_url)
            return PermissionSet(resource_url, acl_url, is_container, codec=self.codec, **options)

        return self.codec.parse(
            document,
            acl_url,
            resource_url=resource_url,
            acl_url=acl_url,
            is_container=is_container,
            **options,
        )

    async def save(
        self,
        permission_set: PermissionSet,
        acl_url: str | None = None,
        content_type: str | None = None,
    ) -> Any:
        """Serialize and store a PermissionSet.

        Raises:
            MissingDependency: If no store or target url is available
        """
        store = self._require_store("save")
        acl_url = acl_url or permission_set.acl_url
        if not acl_url:
            raise MissingDependency("Cannot save - unknown target url")
        content_type = content_type or self.settings.default_content_type
        document = self.codec.serialize(permission_set, content_type)
        return await store.put(acl_url, document, content_type)

    async def clear_permissions(self, resource_url: str) -> Any:
        """Delete the policy document governing a resource."""
        store = self._require_store("clear")
        acl_url = await store.policy_url_for(resource_url)
        logger.info("Clearing permissions for %s", resource_url)
        return await store.delete(acl_url)
